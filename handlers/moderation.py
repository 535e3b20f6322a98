"""AWS Lambda handler for moderators: pending queues and approve/reject."""
import logging
from typing import Any, Dict

from config.settings import Settings
from handlers.common import (
    error_response,
    get_header,
    get_method,
    get_query_params,
    json_response,
    parse_json_body,
    preflight_response,
    setup_logging,
)
from processor.errors import EventServiceError, ValidationError
from storage.submission_store import (
    ArtistApplicationStore,
    ModerationStore,
    MusicVideoStore,
    SubmissionStore,
)
from storage.venue_store import VenueStore

KIND_EVENT = 'event'
KIND_MUSIC_VIDEO = 'music_video'
KIND_VENUE = 'venue'
KIND_ARTIST_APPLICATION = 'artist_application'


def store_for_kind(kind: str, settings: Settings) -> ModerationStore:
    """Pick the table a submission kind lives in."""
    if kind == KIND_EVENT:
        return SubmissionStore(settings.user_events_table, settings.aws_region)
    if kind == KIND_MUSIC_VIDEO:
        return MusicVideoStore(settings.music_videos_table, settings.aws_region)
    if kind == KIND_VENUE:
        return VenueStore(settings.venues_table, settings.aws_region)
    if kind == KIND_ARTIST_APPLICATION:
        return ArtistApplicationStore(settings.artist_applications_table, settings.aws_region)
    raise ValidationError(f"Unknown submission kind: {kind}")


def require_user(event: Dict[str, Any]) -> str:
    """Caller id set by the upstream auth layer."""
    user_id = get_header(event, 'X-User-Id')
    if not user_id:
        raise EventServiceError('Authentication required', status_code=401)
    return user_id


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    GET  ?kind=event|music_video|venue|artist_application lists pending
         records, newest first.
    POST {kind, id, status, rejectionReason?} approves or rejects one.

    Only records still pending can be moderated; a record that was
    already decided answers 409.
    """
    method = get_method(event)
    if method == 'OPTIONS':
        return preflight_response()

    settings = Settings.from_env()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    try:
        moderator_id = require_user(event)

        if method == 'GET':
            kind = get_query_params(event).get('kind') or KIND_EVENT
            records = store_for_kind(kind, settings).pending_records()
            return json_response(200, {'kind': kind, 'items': records})

        if method != 'POST':
            raise ValidationError(f"Method {method} not allowed", status_code=405)

        payload = parse_json_body(event)
        record_id = payload.get('id')
        if not record_id:
            raise ValidationError('id is required')

        store = store_for_kind(payload.get('kind') or KIND_EVENT, settings)
        record = store.update_status(
            str(record_id),
            payload.get('status'),
            moderator_id,
            rejection_reason=payload.get('rejectionReason'),
        )
        return json_response(200, {'success': True, 'record': record})

    except Exception as e:
        logger.error(f"Moderation request failed: {e}", exc_info=True)
        return error_response(e)
