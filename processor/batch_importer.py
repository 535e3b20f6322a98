"""Chunked upsert of imported events with run bookkeeping."""
import logging
from typing import Callable, List, Sequence

from processor.models import ApiSourcedEvent, SyncResult
from storage.event_store import EventStore
from storage.sync_log_store import SyncLogStore

logger = logging.getLogger(__name__)

EventLoader = Callable[[], Sequence[ApiSourcedEvent]]


class BatchImporter:
    """Upserts events in fixed-size chunks and records the run in the sync log."""

    CHUNK_SIZE = 10

    def __init__(self, event_store: EventStore, sync_log_store: SyncLogStore):
        self.event_store = event_store
        self.sync_log_store = sync_log_store

    def run(self, api_source: str, sync_type: str, load_events: EventLoader) -> SyncResult:
        """
        Load events and upsert them chunk by chunk.

        The sync-log row is created before ``load_events`` is called, so a
        failing fetch or mapping step is recorded as an 'error' run. After
        that, a failing chunk is recorded in the result's errors and the
        remaining chunks still run; chunks are not transactional with each
        other.

        Args:
            api_source: Source tag recorded in the sync log
            sync_type: 'batch_import' or 'automatic'
            load_events: Returns the events, already mapped to the stored shape

        Returns:
            SyncResult with processed/added/updated counts and chunk errors

        Raises:
            Exception: Whatever ``load_events`` raised, after the log row has
                been marked 'error'
        """
        log = self.sync_log_store.start(api_source, sync_type)

        try:
            events = list(load_events())
        except Exception as e:
            logger.error(f"Failed to load events for {api_source}: {e}")
            self.sync_log_store.fail(log, str(e))
            raise

        logger.info(f"Starting {sync_type} of {len(events)} events from {api_source}")
        chunks = self._chunk(events)
        result = SyncResult()

        for number, chunk in enumerate(chunks, start=1):
            try:
                added, updated = self.event_store.upsert_chunk(chunk)
            except Exception as e:
                logger.error(f"Batch {number} error: {e}")
                result.errors.append(f"Batch {number}: {e}")
                continue

            result.processed += len(chunk)
            result.added += added
            result.updated += updated
            logger.info(f"Processed batch {number}/{len(chunks)}")

        self.sync_log_store.complete(log, result)
        logger.info(
            f"Import completed: {result.processed} processed, {result.added} added, "
            f"{result.updated} updated, {len(result.errors)} errors"
        )
        return result

    def _chunk(self, events: List[ApiSourcedEvent]) -> List[List[ApiSourcedEvent]]:
        return [events[i:i + self.CHUNK_SIZE] for i in range(0, len(events), self.CHUNK_SIZE)]
