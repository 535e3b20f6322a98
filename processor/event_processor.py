"""Event processor mapping imported payloads onto synced event records."""
import logging
import random
import string
import time
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

import pytz
from bs4 import BeautifulSoup

from processor.models import (
    DEFAULT_CATEGORY,
    ApiSourcedEvent,
    EventbriteEvent,
    ImportRecord,
)

logger = logging.getLogger(__name__)

# Eventbrite top-level category ids -> site category tags
CATEGORY_TAGS = {
    '101': 'business',
    '102': 'technology',
    '103': 'music',
    '104': 'film-media',
    '105': 'arts-culture',
    '107': 'health',
    '108': 'sports',
    '109': 'outdoor',
    '110': 'food-drink',
    '113': 'community',
    '115': 'family',
    '119': 'hobbies',
}
FALLBACK_PROVIDER_CATEGORY = 'entertainment'


def category_for_provider_id(category_id: Optional[str]) -> str:
    """Translate a provider category id, falling back to entertainment."""
    if not category_id:
        return FALLBACK_PROVIDER_CATEGORY
    return CATEGORY_TAGS.get(str(category_id), FALLBACK_PROVIDER_CATEGORY)


class EventProcessor:
    """Processor for validating and normalizing imported event data."""

    MAX_TITLE_LENGTH = 200
    MAX_DESCRIPTION_LENGTH = 5000
    EXTERNAL_ID_SUFFIX_LENGTH = 9

    def __init__(
        self,
        default_city: str = 'Portland',
        default_state: str = 'Oregon',
        timezone: str = 'America/Los_Angeles',
    ):
        """
        Initialize the processor.

        Args:
            default_city: City stored when a record has none
            default_state: State stored when a record has none
            timezone: Local timezone that offset-bearing timestamps are converted to
        """
        self.default_city = default_city
        self.default_state = default_state
        self.timezone = pytz.timezone(timezone)

    def process_payloads(
        self,
        payloads: Iterable[Dict[str, Any]],
        api_source: str,
        today: Optional[date] = None,
    ) -> List[ApiSourcedEvent]:
        """
        Map raw batch-import payloads onto synced event records.

        Args:
            payloads: JSON objects as posted by the importer
            api_source: Source tag stored with every record
            today: Date used when a record has no usable start date

        Returns:
            List of ApiSourcedEvent objects; unusable payloads are skipped
        """
        today = today or date.today()
        events = []
        payloads = list(payloads)

        for index, payload in enumerate(payloads):
            try:
                record = ImportRecord.from_payload(payload)
                events.append(self._process_record(record, api_source, today))
            except Exception as e:
                logger.warning(f"Failed to process import record {index}: {e}")
                continue

        logger.info(
            f"Processed {len(events)} valid events out of "
            f"{len(payloads)} total records from {api_source}"
        )
        return events

    def process_eventbrite(
        self,
        listings: Iterable[EventbriteEvent],
        today: Optional[date] = None,
    ) -> List[ApiSourcedEvent]:
        """
        Map Eventbrite listings onto synced event records.

        Args:
            listings: Parsed provider listings
            today: Date used when a listing has no start time

        Returns:
            List of ApiSourcedEvent objects tagged with source 'eventbrite'
        """
        today = today or date.today()
        events = []

        for listing in listings:
            start = self._parse_timestamp(listing.start_local) or datetime.combine(today, datetime.min.time())
            end = self._parse_timestamp(listing.end_local)
            events.append(ApiSourcedEvent(
                external_id=listing.id or self.synthesize_external_id('eventbrite', None),
                api_source='eventbrite',
                title=self._truncate(listing.name or 'Eventbrite Event', self.MAX_TITLE_LENGTH),
                description=self._clean_description(listing.description),
                category=category_for_provider_id(listing.category_id),
                venue_name=listing.venue_name or 'TBA',
                venue_address=listing.venue_address,
                venue_city=listing.venue_city or self.default_city,
                venue_state=listing.venue_region or self.default_state,
                venue_zip=listing.venue_postal_code,
                start_date=start.isoformat(timespec='seconds'),
                end_date=end.isoformat(timespec='seconds') if end else None,
                price_min=0 if listing.is_free else None,
                price_max=0 if listing.is_free else None,
                price_display='Free' if listing.is_free else 'TBA',
                image_url=listing.logo_url,
                ticket_url=listing.url,
                organizer_name=listing.organizer_name or 'Unknown',
                organizer_url=listing.organizer_url,
                last_updated=int(time.time()),
            ))

        logger.info(f"Mapped {len(events)} Eventbrite listings")
        return events

    def _process_record(self, record: ImportRecord, api_source: str, today: date) -> ApiSourcedEvent:
        start = self._resolve_start(record, today)
        end = self._resolve_end(record, start)

        return ApiSourcedEvent(
            external_id=record.external_id or self.synthesize_external_id(api_source, record.source_id),
            api_source=api_source,
            title=self._truncate(record.title or 'Untitled Event', self.MAX_TITLE_LENGTH),
            description=self._clean_description(record.description),
            category=record.category or DEFAULT_CATEGORY,
            venue_name=record.venue_name or 'TBA',
            venue_address=record.venue_address,
            venue_city=record.venue_city or self.default_city,
            venue_state=record.venue_state or self.default_state,
            venue_zip=record.venue_zip,
            start_date=start.isoformat(timespec='seconds'),
            end_date=end.isoformat(timespec='seconds') if end else None,
            price_min=record.price_min,
            price_max=record.price_max,
            price_display=record.price_display,
            image_url=record.image_url,
            ticket_url=record.ticket_url,
            website_url=record.website_url,
            organizer_name=record.organizer_name,
            organizer_url=record.organizer_url,
            is_featured=record.is_featured,
            last_updated=int(time.time()),
        )

    def _resolve_start(self, record: ImportRecord, today: date) -> datetime:
        timestamp = self._parse_timestamp(record.start_date)
        if timestamp is None:
            normalized = self._normalize_date(record.start_date) if record.start_date else None
            if record.start_date and not normalized:
                logger.warning(
                    f"Invalid start date for event '{record.title}': {record.start_date}, using today"
                )
            day = datetime.strptime(normalized, '%Y-%m-%d').date() if normalized else today
            timestamp = datetime.combine(day, datetime.min.time())

        start_time = self._normalize_time(record.start_time) if record.start_time else None
        if start_time:
            hours, minutes = (int(part) for part in start_time.split(':'))
            timestamp = timestamp.replace(hour=hours, minute=minutes, second=0)
        return timestamp

    def _resolve_end(self, record: ImportRecord, start: datetime) -> Optional[datetime]:
        end = self._parse_timestamp(record.end_date)
        if end:
            return end
        end_time = self._normalize_time(record.end_time) if record.end_time else None
        if end_time and record.start_time:
            hours, minutes = (int(part) for part in end_time.split(':'))
            end = start.replace(hour=hours, minute=minutes, second=0)
            # Late shows that run past midnight
            if end < start:
                end += timedelta(days=1)
            return end
        return None

    def synthesize_external_id(self, api_source: str, source_id: Optional[str]) -> str:
        """Build an external id from source, record id (or epoch ms) and a random suffix."""
        stamp = source_id or str(int(time.time() * 1000))
        suffix = ''.join(
            random.choices(string.ascii_lowercase + string.digits, k=self.EXTERNAL_ID_SUFFIX_LENGTH)
        )
        return f"{api_source}-{stamp}-{suffix}"

    def _clean_description(self, description: Optional[str]) -> Optional[str]:
        if not description:
            return None
        if '<' in description:
            description = BeautifulSoup(description, 'html.parser').get_text(' ', strip=True)
        return self._truncate(description, self.MAX_DESCRIPTION_LENGTH) or None

    @staticmethod
    def _truncate(value: str, limit: int) -> str:
        return value[:limit]

    def _parse_timestamp(self, value: Optional[str]) -> Optional[datetime]:
        """Parse an ISO 8601 timestamp with a time part into naive local time.

        Timestamps carrying an offset (including a trailing Z) are converted
        to the processor's timezone; naive ones are taken as already local.
        """
        if not value or 'T' not in value:
            return None
        try:
            parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(self.timezone)
        return parsed.replace(tzinfo=None, microsecond=0)

    def _normalize_date(self, date_str: str) -> Optional[str]:
        """
        Normalize date to ISO 8601 format (YYYY-MM-DD).

        Args:
            date_str: Date string in various formats

        Returns:
            ISO 8601 formatted date string or None if parsing fails
        """
        date_formats = [
            '%Y-%m-%d',      # ISO 8601
            '%m/%d/%Y',      # US format
            '%m-%d-%Y',      # US format with dashes
            '%B %d, %Y',     # Full month name
            '%b %d, %Y',     # Abbreviated month name
            '%Y/%m/%d',      # Alternative ISO format
        ]

        for fmt in date_formats:
            try:
                date_obj = datetime.strptime(date_str.strip(), fmt)
                return date_obj.strftime('%Y-%m-%d')
            except ValueError:
                continue

        return None

    def _normalize_time(self, time_str: str) -> Optional[str]:
        """
        Normalize time to 24-hour format (HH:MM).

        Args:
            time_str: Time string in various formats

        Returns:
            24-hour formatted time string or None if parsing fails
        """
        time_formats = [
            '%H:%M',         # 24-hour format
            '%I:%M %p',      # 12-hour format with AM/PM
            '%I:%M%p',       # 12-hour format without space
            '%H:%M:%S',      # 24-hour with seconds
            '%I:%M:%S %p',   # 12-hour with seconds and AM/PM
        ]

        time_str = time_str.strip()

        for fmt in time_formats:
            try:
                time_obj = datetime.strptime(time_str, fmt)
                return time_obj.strftime('%H:%M')
            except ValueError:
                continue

        return None
