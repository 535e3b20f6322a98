"""AWS Lambda handler that pulls live listings from Eventbrite into the events table."""
import hmac
import logging
import time
from typing import Any, Dict

from config.settings import Settings
from handlers.common import (
    get_bearer_token,
    get_method,
    is_scheduled_invocation,
    json_response,
    preflight_response,
    setup_logging,
)
from processor.batch_importer import BatchImporter
from processor.errors import ConfigurationError
from processor.event_processor import EventProcessor
from providers.eventbrite import EventbriteClient
from storage.event_store import EventStore
from storage.sync_log_store import SyncLogStore

API_SOURCE = 'eventbrite'
SYNC_TYPE = 'automatic'


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Fetch Eventbrite listings and upsert them like a batch import.

    Invoked either through API Gateway (bearer token checked when
    SYNC_API_TOKEN is set) or on a schedule.

    Args:
        event: API Gateway proxy event or EventBridge event
        context: Lambda context object

    Returns:
        Proxy response with the sync statistics
    """
    if get_method(event) == 'OPTIONS':
        return preflight_response()

    settings = Settings.from_env()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)
    start_time = time.time()

    if settings.sync_api_token and not is_scheduled_invocation(event):
        token = get_bearer_token(event) or ''
        if not hmac.compare_digest(token, settings.sync_api_token):
            logger.warning("Rejected sync request with a missing or invalid token")
            return json_response(401, {'success': False, 'error': 'Unauthorized'})

    try:
        if not settings.eventbrite_api_key:
            raise ConfigurationError('Eventbrite API key is not configured')

        client = EventbriteClient(
            settings.eventbrite_api_key,
            location=settings.eventbrite_location,
            timeout=settings.http_timeout,
        )
        processor = EventProcessor(timezone=settings.timezone)
        importer = BatchImporter(
            EventStore(settings.events_table, settings.aws_region),
            SyncLogStore(settings.sync_log_table, settings.aws_region),
        )
        today = settings.local_now().date()
        result = importer.run(
            API_SOURCE,
            SYNC_TYPE,
            lambda: processor.process_eventbrite(client.fetch_events(), today),
        )

        logger.info(
            f"Eventbrite sync completed in {round(time.time() - start_time, 2)}s: "
            f"{result.added} added, {result.updated} updated"
        )
        return json_response(200, {
            'success': True,
            'message': 'Event sync completed',
            'stats': result.to_stats(),
        })

    except Exception as e:
        logger.error(f"Event sync failed: {e}", exc_info=True)
        return json_response(500, {
            'success': False,
            'error': str(e),
            'details': repr(e),
        })
