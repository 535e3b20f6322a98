"""AWS Lambda handler for batch event imports."""
import logging
import time
from typing import Any, Dict

from config.settings import Settings
from handlers.common import (
    get_method,
    json_response,
    parse_json_body,
    preflight_response,
    setup_logging,
)
from processor.batch_importer import BatchImporter
from processor.event_processor import EventProcessor
from storage.event_store import EventStore
from storage.sync_log_store import SyncLogStore

DEFAULT_API_SOURCE = 'manual'
SYNC_TYPE = 'batch_import'


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Import a batch of events posted as ``{events: [...], api_source}``.

    Args:
        event: API Gateway proxy event
        context: Lambda context object

    Returns:
        Proxy response with the import statistics
    """
    if get_method(event) == 'OPTIONS':
        return preflight_response()

    settings = Settings.from_env()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)
    start_time = time.time()

    try:
        payload = parse_json_body(event)
        events = payload.get('events')
        if not isinstance(events, list):
            return json_response(400, {'error': 'events array is required'})

        api_source = payload.get('api_source') or DEFAULT_API_SOURCE
        logger.info(f"Starting batch import of {len(events)} events from {api_source}")

        processor = EventProcessor(timezone=settings.timezone)
        importer = BatchImporter(
            EventStore(settings.events_table, settings.aws_region),
            SyncLogStore(settings.sync_log_table, settings.aws_region),
        )
        today = settings.local_now().date()
        result = importer.run(
            api_source,
            SYNC_TYPE,
            lambda: processor.process_payloads(events, api_source, today),
        )

        logger.info(f"Batch import finished in {round(time.time() - start_time, 2)}s")
        return json_response(200, {
            'success': True,
            'message': 'Batch import completed',
            'stats': result.to_stats(),
        })

    except Exception as e:
        logger.error(f"Error in batch import: {e}", exc_info=True)
        return json_response(500, {
            'success': False,
            'error': str(e),
            'details': repr(e),
        })
