"""Sync-log rows: one per import/sync run."""
import logging
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Optional

from processor.models import SyncLog, SyncResult, SyncStatus
from storage.dynamodb_manager import DynamoDBManager, from_dynamodb, to_dynamodb

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SyncLogStore(DynamoDBManager):
    """Creates a log row in 'running' state and closes it exactly once."""

    def start(self, api_source: str, sync_type: str) -> SyncLog:
        log = SyncLog(
            log_id=str(uuid.uuid4()),
            api_source=api_source,
            sync_type=sync_type,
            status=SyncStatus.RUNNING.value,
            started_at=_utc_now(),
        )
        self.table.put_item(Item=to_dynamodb(asdict(log)))
        logger.info(f"Started {sync_type} sync log {log.log_id} for {api_source}")
        return log

    def complete(self, log: SyncLog, result: SyncResult) -> SyncLog:
        """Close a running log with the run's statistics."""
        error_message = '; '.join(result.errors) if result.errors else None
        return self._close(log, result.status, result, error_message)

    def fail(self, log: SyncLog, error_message: str) -> SyncLog:
        """Close a running log that failed before any chunk was processed."""
        return self._close(log, SyncStatus.ERROR, SyncResult(), error_message)

    def get(self, log_id: str) -> Optional[SyncLog]:
        item = self.table.get_item(Key={'log_id': log_id}).get('Item')
        return SyncLog(**from_dynamodb(item)) if item else None

    def _close(
        self,
        log: SyncLog,
        status: SyncStatus,
        result: SyncResult,
        error_message: Optional[str],
    ) -> SyncLog:
        log.status = status.value
        log.events_processed = result.processed
        log.events_added = result.added
        log.events_updated = result.updated
        log.completed_at = _utc_now()
        log.error_message = error_message

        # Only a running row can be closed
        self.table.update_item(
            Key={'log_id': log.log_id},
            UpdateExpression=(
                'SET #status = :status, events_processed = :processed, '
                'events_added = :added, events_updated = :updated, '
                'completed_at = :completed_at, error_message = :error_message'
            ),
            ConditionExpression='#status = :running',
            ExpressionAttributeNames={'#status': 'status'},
            ExpressionAttributeValues={
                ':status': log.status,
                ':processed': log.events_processed,
                ':added': log.events_added,
                ':updated': log.events_updated,
                ':completed_at': log.completed_at,
                ':error_message': error_message,
                ':running': SyncStatus.RUNNING.value,
            },
        )
        logger.info(f"Sync log {log.log_id} closed with status {log.status}")
        return log
