"""AWS Lambda handler proxying Google Places details lookups."""
import logging
from typing import Any, Dict

from config.settings import Settings
from handlers.common import (
    get_method,
    json_response,
    parse_json_body,
    preflight_response,
    setup_logging,
)
from processor.errors import ValidationError
from providers.google_places import GooglePlacesClient


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Return the provider's details JSON for ``{placeId}``."""
    if get_method(event) == 'OPTIONS':
        return preflight_response()

    settings = Settings.from_env()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    try:
        place_id = parse_json_body(event).get('placeId')
        if not place_id:
            return json_response(400, {'error': 'placeId parameter is required'})

        if not settings.google_places_api_key:
            return json_response(500, {'error': 'Google Places API key not configured'})

        client = GooglePlacesClient(settings.google_places_api_key, timeout=settings.http_timeout)
        return json_response(200, client.get_place_details(str(place_id)))

    except ValidationError as e:
        return json_response(400, {'error': e.message})
    except Exception as e:
        logger.error(f"Error in places details: {e}", exc_info=True)
        return json_response(500, {'error': getattr(e, 'message', str(e))})
