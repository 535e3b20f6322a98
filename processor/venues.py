"""Venue de-duplication across the venues table and approved events."""
import hashlib
import logging
import unicodedata
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from config.sites import SiteConfig
from processor.models import ModerationStatus, Venue

logger = logging.getLogger(__name__)

EVENT_VENUE_ID_PREFIX = 'event-venue:'


def venue_key(
    name: Optional[str],
    city: Optional[str],
    state: Optional[str],
    zip_code: Optional[str],
    default_city: str = 'Portland',
    default_state: str = 'Oregon',
) -> str:
    """Composite identity key: trimmed, lower-cased name|city|state|zip."""
    parts = [
        name or '',
        city or default_city,
        state or default_state,
        zip_code or '',
    ]
    return '|'.join(part.strip().lower() for part in parts)


def _sort_key(venue: Venue) -> str:
    # Accent-insensitive, case-insensitive ordering ("Écho" sorts with "Echo")
    decomposed = unicodedata.normalize('NFKD', venue.name)
    stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


class VenueNormalizer:
    """Combines stored venues with venues implied by approved events."""

    def __init__(self, site: Optional[SiteConfig] = None):
        self.default_city = site.default_city if site else 'Portland'
        self.default_state = site.default_state if site else 'Oregon'

    def key_for(self, name, city, state, zip_code) -> str:
        return venue_key(name, city, state, zip_code, self.default_city, self.default_state)

    def load(
        self,
        stored_fetcher: Callable[[], List[Venue]],
        rows_fetcher: Callable[[], List[Mapping]],
    ) -> List[Venue]:
        """Read both venue sources together and merge them; read errors propagate."""
        with ThreadPoolExecutor(max_workers=2) as executor:
            stored_future = executor.submit(stored_fetcher)
            rows_future = executor.submit(rows_fetcher)
            return self.merge(stored_future.result(), rows_future.result())

    def merge(self, stored_venues: Iterable[Venue], event_rows: Iterable[Mapping]) -> List[Venue]:
        """
        Build the de-duplicated venue list.

        Args:
            stored_venues: Approved rows from the venues table; these win
            event_rows: Mappings with venue_name/venue_address/venue_city/
                venue_state/venue_zip taken from approved events

        Returns:
            Venues sorted by name
        """
        venues: Dict[str, Venue] = {}

        for venue in stored_venues:
            key = self.key_for(venue.name, venue.city, venue.state, venue.zip_code)
            venues.setdefault(key, venue)

        inferred = 0
        for row in event_rows:
            name = (row.get('venue_name') or '').strip()
            if not name:
                continue
            key = self.key_for(name, row.get('venue_city'), row.get('venue_state'), row.get('venue_zip'))
            if key in venues:
                continue
            venues[key] = Venue(
                id=self.synthesize_id(key),
                name=name,
                address=row.get('venue_address'),
                city=row.get('venue_city') or self.default_city,
                state=row.get('venue_state') or self.default_state,
                zip_code=row.get('venue_zip'),
                status=ModerationStatus.APPROVED.value,
            )
            inferred += 1

        logger.info(f"Merged {len(venues)} venues ({inferred} inferred from events)")
        return sorted(venues.values(), key=_sort_key)

    @staticmethod
    def synthesize_id(key: str) -> str:
        """Id for an event-derived venue; the prefix never appears on stored (UUID) ids."""
        digest = hashlib.sha1(key.encode('utf-8')).hexdigest()[:16]
        return f"{EVENT_VENUE_ID_PREFIX}{digest}"
