"""AWS Lambda handler for user submissions: events, music videos, venues and artist applications."""
import logging
from dataclasses import asdict
from typing import Any, Dict

from config.settings import Settings
from handlers.common import (
    empty_response,
    error_response,
    get_method,
    get_query_params,
    json_response,
    parse_json_body,
    preflight_response,
    setup_logging,
)
from handlers.moderation import (
    KIND_ARTIST_APPLICATION,
    KIND_EVENT,
    KIND_VENUE,
    require_user,
    store_for_kind,
)
from processor.errors import ValidationError
from processor.validation import (
    build_artist_application,
    build_music_video,
    build_user_event,
    build_venue,
)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    GET    ?kind=         lists the caller's own submissions.
    POST   {kind, ...}    stores a new pending submission (201).
    DELETE {kind, id}     withdraws the caller's pending submission (204).
    """
    method = get_method(event)
    if method == 'OPTIONS':
        return preflight_response()

    settings = Settings.from_env()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    try:
        user_id = require_user(event)

        if method == 'GET':
            kind = get_query_params(event).get('kind') or KIND_EVENT
            store = store_for_kind(kind, settings)
            return json_response(200, {'kind': kind, 'items': store.items_for_owner(user_id)})

        payload = parse_json_body(event)
        kind = payload.get('kind') or KIND_EVENT
        store = store_for_kind(kind, settings)

        if method == 'POST':
            if kind == KIND_EVENT:
                record = build_user_event(payload, user_id, settings.local_now().date())
            elif kind == KIND_VENUE:
                record = build_venue(payload, user_id)
            elif kind == KIND_ARTIST_APPLICATION:
                record = build_artist_application(payload, user_id)
            else:
                record = build_music_video(payload.get('title'), payload.get('youtube_url'), user_id)
            store.create(record)
            logger.info(f"Accepted {kind} submission {record.id} from {user_id}")
            return json_response(201, asdict(record))

        if method == 'DELETE':
            record_id = payload.get('id')
            if not record_id:
                raise ValidationError('id is required')
            store.delete_pending(str(record_id), user_id)
            return empty_response(204)

        raise ValidationError(f"Method {method} not allowed", status_code=405)

    except Exception as e:
        logger.error(f"Submission request failed: {e}", exc_info=True)
        return error_response(e)
