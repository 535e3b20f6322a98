"""Google Places details lookup."""
import logging
from typing import Any, Dict

import requests

from processor.errors import ProviderError

logger = logging.getLogger(__name__)

DETAIL_FIELDS = (
    'place_id', 'name', 'formatted_address', 'formatted_phone_number', 'website',
    'rating', 'user_ratings_total', 'photos', 'geometry', 'reviews',
)


class GooglePlacesClient:
    """Thin client over the Places details endpoint."""

    DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"

    def __init__(self, api_key: str, timeout: int = 30):
        self.api_key = api_key
        self.timeout = timeout

    def get_place_details(self, place_id: str) -> Dict[str, Any]:
        """
        Fetch details for a place.

        Args:
            place_id: Google place id

        Returns:
            The provider's JSON response, unmodified

        Raises:
            ProviderError: On transport failure or a non-2xx response
        """
        params = {
            'place_id': place_id,
            'fields': ','.join(DETAIL_FIELDS),
            'key': self.api_key,
        }
        try:
            response = requests.get(self.DETAILS_URL, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise ProviderError(f"Google Places request failed: {e}", provider='google_places')

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            message = data.get('error_message') or 'Google Places API error'
            logger.error(f"Google Places returned {response.status_code}: {message}")
            raise ProviderError(message, provider='google_places')

        logger.info(f"Fetched place details for {place_id}")
        return data
