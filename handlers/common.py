"""Shared logging and API Gateway request/response helpers for the handlers."""
import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from processor.errors import EventServiceError, ValidationError
from storage.dynamodb_manager import is_conditional_check_failure

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'authorization, x-client-info, apikey, content-type, x-user-id',
    'Access-Control-Allow-Methods': 'GET, POST, DELETE, OPTIONS',
}


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def json_response(status_code: int, body: Any) -> Dict[str, Any]:
    """API Gateway proxy response with a JSON body and the CORS headers."""
    headers = dict(CORS_HEADERS)
    headers['Content-Type'] = 'application/json'
    return {
        'statusCode': status_code,
        'headers': headers,
        'body': json.dumps(body, default=str),
    }


def empty_response(status_code: int = 204) -> Dict[str, Any]:
    return {'statusCode': status_code, 'headers': dict(CORS_HEADERS), 'body': ''}


def preflight_response() -> Dict[str, Any]:
    return {'statusCode': 200, 'headers': dict(CORS_HEADERS), 'body': 'ok'}


def error_response(error: Exception) -> Dict[str, Any]:
    """
    Translate a handler failure into a JSON error response.

    EventServiceError subclasses carry their own status; a DynamoDB
    conditional-check failure means the record changed underneath the
    caller (409); anything else is a 500.
    """
    if isinstance(error, EventServiceError):
        return json_response(error.status_code, {'error': error.message})
    if isinstance(error, ClientError) and is_conditional_check_failure(error):
        return json_response(409, {'error': 'Record is no longer pending'})
    return json_response(500, {'error': str(error)})


def get_method(event: Dict[str, Any]) -> str:
    """HTTP method for both REST (v1) and HTTP API (v2) payloads."""
    method = event.get('httpMethod')
    if not method:
        method = event.get('requestContext', {}).get('http', {}).get('method', '')
    return method.upper()


def is_scheduled_invocation(event: Dict[str, Any]) -> bool:
    """True for EventBridge schedule payloads, which carry no HTTP request."""
    if event.get('source') == 'aws.events':
        return True
    return 'httpMethod' not in event and 'requestContext' not in event


def get_path(event: Dict[str, Any]) -> str:
    path = event.get('path') or event.get('rawPath') or '/'
    return path.rstrip('/') or '/'


def get_header(event: Dict[str, Any], name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    headers = event.get('headers') or {}
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def get_query_params(event: Dict[str, Any]) -> Dict[str, str]:
    return dict(event.get('queryStringParameters') or {})


def get_bearer_token(event: Dict[str, Any]) -> Optional[str]:
    authorization = get_header(event, 'Authorization') or ''
    scheme, _, token = authorization.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def parse_json_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Decode the request body as a JSON object.

    Returns:
        The decoded object; an empty dict when there is no body

    Raises:
        ValidationError: If the body is not valid JSON or not an object
    """
    body = event.get('body')
    if not body:
        return {}
    try:
        if event.get('isBase64Encoded'):
            body = base64.b64decode(body, validate=True).decode('utf-8')
        payload = json.loads(body)
    except (ValueError, binascii.Error):
        raise ValidationError('Request body must be valid JSON')
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')
    return payload
