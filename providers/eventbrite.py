"""Eventbrite client for the live event sync."""
import logging
from typing import List

import requests

from processor.errors import ProviderError
from processor.models import EventbriteEvent

logger = logging.getLogger(__name__)


class EventbriteClient:
    """Client for the Eventbrite event search API."""

    BASE_URL = "https://www.eventbriteapi.com/v3/events/search/"

    def __init__(self, api_key: str, location: str = 'Portland,OR', timeout: int = 30):
        """
        Initialize the Eventbrite client.

        Args:
            api_key: Private OAuth token
            location: Address string used as the search location
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.api_key = api_key
        self.location = location
        self.timeout = timeout

    def fetch_events(self) -> List[EventbriteEvent]:
        """
        Fetch listings near the configured location.

        Returns:
            List of EventbriteEvent objects

        Raises:
            ProviderError: If the request fails or returns a non-2xx status
        """
        logger.info(f"Fetching Eventbrite events for {self.location}")
        params = {
            'location.address': self.location,
            'expand': 'venue,organizer',
        }
        headers = {
            'Authorization': f"Bearer {self.api_key}",
            'Content-Type': 'application/json',
        }

        try:
            response = requests.get(
                self.BASE_URL,
                params=params,
                headers=headers,
                timeout=self.timeout
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Eventbrite request failed: {e}")
            raise ProviderError(f"Eventbrite request failed: {e}", provider='eventbrite')

        events = [EventbriteEvent.from_payload(item) for item in payload.get('events') or []]
        logger.info(f"Successfully fetched {len(events)} Eventbrite events")
        return events
