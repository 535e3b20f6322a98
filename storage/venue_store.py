"""Storage for curated venues."""
import logging
from dataclasses import fields
from typing import List

from boto3.dynamodb.conditions import Attr

from processor.models import ModerationStatus, Venue
from storage.submission_store import ModerationStore

logger = logging.getLogger(__name__)

VENUE_FIELDS = {f.name for f in fields(Venue)}


class VenueStore(ModerationStore):
    """Venues table, keyed by 'id'. User-proposed venues wait for approval."""

    OWNER_FIELD = 'created_by'

    def create(self, venue: Venue) -> Venue:
        self._put(venue)
        logger.info(f"Stored {venue.status} venue {venue.id} ({venue.name})")
        return venue

    def list_approved(self) -> List[Venue]:
        items = self.scan_items(Attr('status').eq(ModerationStatus.APPROVED.value))
        venues = [Venue(**{k: v for k, v in item.items() if k in VENUE_FIELDS}) for item in items]
        return sorted(venues, key=lambda venue: venue.name)
