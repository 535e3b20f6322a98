"""AWS Lambda handler for the public read API: events, venues and categories."""
import logging
from typing import Any, Dict

from config.settings import Settings
from config.sites import resolve_site
from handlers.common import (
    error_response,
    get_header,
    get_method,
    get_path,
    get_query_params,
    json_response,
    preflight_response,
    setup_logging,
)
from processor.aggregator import EventAggregator
from processor.errors import NotFoundError, ValidationError
from processor.models import EventQuery
from processor.venues import VenueNormalizer
from storage.event_store import EventStore
from storage.submission_store import SubmissionStore
from storage.venue_store import VenueStore


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Route GET /events, /events/featured, /venues and /categories.

    The site (and with it the location filter and venue defaults) is
    resolved from the Host header.
    """
    method = get_method(event)
    if method == 'OPTIONS':
        return preflight_response()

    settings = Settings.from_env()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    try:
        if method != 'GET':
            raise ValidationError(f"Method {method} not allowed", status_code=405)

        site = resolve_site(get_header(event, 'Host'))
        path = get_path(event)
        now = settings.local_now()

        event_store = EventStore(settings.events_table, settings.aws_region)
        submission_store = SubmissionStore(settings.user_events_table, settings.aws_region)

        if path.endswith('/venues'):
            venue_store = VenueStore(settings.venues_table, settings.aws_region)
            venues = VenueNormalizer(site).load(
                venue_store.list_approved, submission_store.approved_venue_rows
            )
            return json_response(200, {'venues': [venue.to_dict() for venue in venues]})

        aggregator = EventAggregator(
            lambda: event_store.get_upcoming_events(now),
            submission_store.get_approved_events,
            site=site,
        )

        if path.endswith('/categories'):
            return json_response(200, {'categories': aggregator.category_counts(now)})

        if path.endswith('/events/featured'):
            events = aggregator.featured(now)
        elif path.endswith('/events'):
            events = aggregator.aggregate(EventQuery.from_params(get_query_params(event)), now)
        else:
            raise NotFoundError(f"No route for {path}")

        logger.info(f"Returning {len(events)} events for {site.domain}")
        return json_response(200, {
            'site': site.name,
            'events': [item.to_dict() for item in events],
        })

    except Exception as e:
        logger.error(f"Read API request failed: {e}", exc_info=True)
        return error_response(e)
