"""Event aggregation across synced and user-submitted sources."""
import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from config.sites import SiteConfig
from processor.models import (
    DEFAULT_CATEGORY,
    USER_SUBMITTED_SOURCE,
    ApiSourcedEvent,
    DateFilter,
    Event,
    EventQuery,
    EventSource,
    UserSourcedEvent,
)
from processor.recurrence import generate_occurrences

logger = logging.getLogger(__name__)

ALL_CATEGORIES = 'all'

SourceFetcher = Callable[[], Sequence[EventSource]]


def _parse_clock(value: Optional[str]) -> Optional[time]:
    if not value:
        return None
    for fmt in ('%H:%M:%S', '%H:%M'):
        try:
            return datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue
    return None


def _from_api(source: ApiSourcedEvent) -> Event:
    end = datetime.fromisoformat(source.end_date) if source.end_date else None
    return Event(
        id=f"{source.api_source}:{source.external_id}",
        external_id=source.external_id,
        api_source=source.api_source,
        title=source.title,
        start_date=datetime.fromisoformat(source.start_date),
        end_date=end,
        category=source.category or DEFAULT_CATEGORY,
        venue_name=source.venue_name,
        description=source.description,
        venue_address=source.venue_address,
        venue_city=source.venue_city,
        venue_state=source.venue_state,
        venue_zip=source.venue_zip,
        price_min=source.price_min,
        price_max=source.price_max,
        price_display=source.price_display,
        image_url=source.image_url,
        ticket_url=source.ticket_url,
        website_url=source.website_url,
        organizer_name=source.organizer_name,
        is_featured=source.is_featured,
    )


def _from_user(source: UserSourcedEvent, day: date, event_id: str, image_url: Optional[str]) -> Event:
    start_clock = _parse_clock(source.start_time)
    end_clock = _parse_clock(source.end_time)
    start = datetime.combine(day, start_clock or time())
    end = datetime.combine(day, end_clock) if start_clock and end_clock else None
    return Event(
        id=event_id,
        external_id=source.id,
        api_source=USER_SUBMITTED_SOURCE,
        title=source.title,
        start_date=start,
        end_date=end,
        category=source.category or DEFAULT_CATEGORY,
        venue_name=source.venue_name,
        description=source.description,
        venue_address=source.venue_address,
        venue_city=source.venue_city,
        venue_state=source.venue_state,
        venue_zip=source.venue_zip,
        price_min=source.price_min,
        price_max=source.price_max,
        price_display=source.price_display,
        image_url=image_url,
        ticket_url=source.ticket_url,
        website_url=source.website_url,
        organizer_name=source.organizer_name,
        is_featured=source.is_featured,
        created_by=source.created_by,
    )


def normalize_event(source: EventSource, today: date, recurrence_months: int = 6) -> List[Event]:
    """
    Map either source shape onto the unified Event view.

    Recurring user submissions expand into one Event per occurrence, with
    ids suffixed by the occurrence index.
    """
    if isinstance(source, ApiSourcedEvent):
        return [_from_api(source)]

    start_day = date.fromisoformat(source.start_date[:10])
    if not (source.is_recurring and source.recurrence_pattern):
        return [_from_user(source, start_day, source.id, source.image_url)]

    until = date.fromisoformat(source.recurrence_end_date[:10]) if source.recurrence_end_date else None
    occurrences = generate_occurrences(
        start_day, source.recurrence_pattern, today, until=until, months_ahead=recurrence_months
    )
    events = []
    for index, day in enumerate(occurrences):
        # Occurrence i shows gallery image i, wrapping around
        image_url = source.image_urls[index % len(source.image_urls)] if source.image_urls else source.image_url
        events.append(_from_user(source, day, f"{source.id}-{index}", image_url))
    return events


def end_of_week(now: datetime) -> datetime:
    """Last instant of the Monday-Sunday week containing ``now``."""
    sunday = now.date() + timedelta(days=6 - now.weekday())
    return datetime.combine(sunday, time.max)


def apply_event_filters(events: Sequence[Event], query: EventQuery, now: datetime) -> List[Event]:
    """
    Filter and order a merged event list.

    Drops events starting before ``now``, applies the search term (title or
    venue name, case-insensitive), the category (unless 'all') and the date
    bucket, then sorts by start time. The sort is stable, so ties keep their
    merged order.
    """
    filtered = [event for event in events if event.start_date >= now]

    if query.search_term:
        needle = query.search_term.lower()
        filtered = [
            event for event in filtered
            if needle in event.title.lower() or needle in (event.venue_name or '').lower()
        ]

    if query.category and query.category != ALL_CATEGORIES:
        filtered = [event for event in filtered if event.category == query.category]

    if query.featured_only:
        filtered = [event for event in filtered if event.is_featured]

    if query.date_filter == DateFilter.TODAY:
        filtered = [event for event in filtered if event.start_date.date() == now.date()]
    elif query.date_filter == DateFilter.TOMORROW:
        tomorrow = now.date() + timedelta(days=1)
        filtered = [event for event in filtered if event.start_date.date() == tomorrow]
    elif query.date_filter == DateFilter.THIS_WEEK:
        week_end = end_of_week(now)
        filtered = [event for event in filtered if event.start_date <= week_end]

    return sorted(filtered, key=lambda event: event.start_date)


class EventAggregator:
    """Merges synced and approved user-submitted events into one listing."""

    def __init__(
        self,
        api_fetcher: SourceFetcher,
        user_fetcher: SourceFetcher,
        site: Optional[SiteConfig] = None,
        recurrence_months: int = 6,
    ):
        """
        Initialize the aggregator.

        Args:
            api_fetcher: Returns active synced events (ApiSourcedEvent)
            user_fetcher: Returns approved user submissions (UserSourcedEvent)
            site: Site whose location filter applies, if any
            recurrence_months: Horizon for expanding recurring submissions
        """
        self.api_fetcher = api_fetcher
        self.user_fetcher = user_fetcher
        self.site = site
        self.recurrence_months = recurrence_months

    def aggregate(self, query: EventQuery, now: datetime) -> List[Event]:
        """Return upcoming events matching ``query``, ordered by start time."""
        events = self._merged_events(now)
        results = apply_event_filters(events, query, now)
        logger.info(f"Aggregated {len(results)} events out of {len(events)} candidates")
        return results

    def featured(self, now: datetime) -> List[Event]:
        return self.aggregate(EventQuery(featured_only=True), now)

    def category_counts(self, now: datetime) -> Dict[str, int]:
        """Upcoming events per category; categories without events are omitted."""
        counts = Counter(event.category for event in self.aggregate(EventQuery(), now))
        return dict(sorted(counts.items()))

    def _merged_events(self, now: datetime) -> List[Event]:
        with ThreadPoolExecutor(max_workers=2) as executor:
            api_future = executor.submit(self._safe_fetch, 'synced', self.api_fetcher)
            user_future = executor.submit(self._safe_fetch, 'user-submitted', self.user_fetcher)
            sources = list(api_future.result()) + list(user_future.result())

        events: List[Event] = []
        for source in sources:
            try:
                events.extend(normalize_event(source, now.date(), self.recurrence_months))
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed event '{getattr(source, 'title', '?')}': {e}")

        location_filter = self.site.location_filter if self.site else None
        if location_filter:
            events = [
                event for event in events
                if location_filter.matches(event.venue_city, event.venue_state)
            ]
        return events

    @staticmethod
    def _safe_fetch(label: str, fetcher: SourceFetcher) -> Sequence[EventSource]:
        try:
            return fetcher()
        except Exception as e:
            logger.error(f"Error fetching {label} events: {e}", exc_info=True)
            return []
