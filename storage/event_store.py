"""Storage for synced (provider-sourced) events."""
import logging
from dataclasses import asdict, fields
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set, Tuple

from boto3.dynamodb.conditions import Attr

from processor.models import ApiSourcedEvent
from storage.dynamodb_manager import DynamoDBManager, from_dynamodb, to_dynamodb

logger = logging.getLogger(__name__)

EVENT_KEY = ('api_source', 'external_id')
EVENT_FIELDS = {f.name for f in fields(ApiSourcedEvent)}


class EventStore(DynamoDBManager):
    """Synced events keyed by (api_source, external_id).

    The table's composite primary key is the upsert conflict target: writing
    a record whose pair already exists replaces the stored row.
    """

    def get_upcoming_events(self, now: datetime) -> List[ApiSourcedEvent]:
        """Active events starting at or after ``now`` (local ISO comparison)."""
        items = self.scan_items(
            Attr('is_active').eq(True) & Attr('start_date').gte(now.isoformat(timespec='seconds'))
        )
        return [event for event in map(self._item_to_event, items) if event]

    def get_event(self, api_source: str, external_id: str) -> Optional[ApiSourcedEvent]:
        response = self.table.get_item(Key={'api_source': api_source, 'external_id': external_id})
        item = response.get('Item')
        return self._item_to_event(from_dynamodb(item)) if item else None

    def count_events(self) -> int:
        return len(self.scan_items())

    def upsert_chunk(self, events: Sequence[ApiSourcedEvent]) -> Tuple[int, int]:
        """
        Write one chunk of events.

        Args:
            events: Events to insert or overwrite

        Returns:
            Tuple of (added, updated) counts, keyed on distinct conflict pairs

        Raises:
            ClientError: When the read or the write is rejected
        """
        if not events:
            return 0, 0

        keys = {(event.api_source, event.external_id) for event in events}
        existing = self._existing_keys(keys)

        with self.table.batch_writer(overwrite_by_pkeys=list(EVENT_KEY)) as writer:
            for event in events:
                writer.put_item(Item=self._event_to_item(event))

        updated = len(keys & existing)
        return len(keys) - updated, updated

    def _existing_keys(self, keys: Set[Tuple[str, str]]) -> Set[Tuple[str, str]]:
        request = {
            self.table_name: {
                'Keys': [{'api_source': source, 'external_id': external_id} for source, external_id in keys],
                'ProjectionExpression': 'api_source, external_id',
            }
        }
        found = set()
        while request:
            response = self.dynamodb.batch_get_item(RequestItems=request)
            for item in response.get('Responses', {}).get(self.table_name, []):
                found.add((item['api_source'], item['external_id']))
            request = response.get('UnprocessedKeys') or None
        return found

    def _event_to_item(self, event: ApiSourcedEvent) -> Dict:
        return to_dynamodb(asdict(event))

    def _item_to_event(self, item: Dict) -> Optional[ApiSourcedEvent]:
        try:
            return ApiSourcedEvent(**{k: v for k, v in item.items() if k in EVENT_FIELDS})
        except TypeError as e:
            logger.warning(f"Failed to convert item to ApiSourcedEvent: {e}")
            return None
