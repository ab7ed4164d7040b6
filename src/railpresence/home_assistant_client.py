"""Home Assistant client for the tracked person's location and status."""

import logging
from typing import Any, Dict

import requests

from .exceptions import FeedError
from .models import Coordinate, PersonLocation

logger = logging.getLogger(__name__)


class HomeAssistantClient:
    """Fetches a person entity from the Home Assistant REST API."""

    def __init__(self, base_url: str, bearer_token: str, timeout: float = 10):
        """
        Initialize the client.

        Args:
            base_url: Home Assistant base URL (e.g., "http://homeassistant.local:8123")
            bearer_token: Long-lived access token.
            timeout: Request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {bearer_token}",
            "Content-Type": "application/json",
        })

    def get_state(self, entity_id: str) -> Dict[str, Any]:
        """Fetch the raw state object of an entity."""
        url = f"{self.base_url}/api/states/{entity_id}"
        logger.debug(f"Fetching {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            entity_state = response.json()
        except (requests.RequestException, ValueError) as e:
            raise FeedError(f"Failed to fetch state of {entity_id}: {e}") from e

        if not isinstance(entity_state, dict):
            raise FeedError(f"Unexpected state payload for {entity_id}")
        return entity_state

    def get_location(self, entity_id: str) -> PersonLocation:
        """
        Get the person's name, status and coordinate.

        Name and status are optional; the coordinate is required.

        Raises:
            FeedError: If the request fails or latitude/longitude are missing.
        """
        entity_state = self.get_state(entity_id)
        attributes = entity_state.get("attributes") or {}

        name = attributes.get("friendly_name")
        if name is None:
            logger.warning("Could not find 'friendly_name' in attributes")
        elif not isinstance(name, str):
            logger.warning("Could not parse 'friendly_name' as str")
            name = None

        status = entity_state.get("state")
        if status is None:
            logger.warning(f"{entity_id}'s 'state' was not provided")
        elif not isinstance(status, str):
            logger.warning("Could not parse 'state' as str")
            status = None

        latitude = attributes.get("latitude")
        longitude = attributes.get("longitude")
        if not (_is_number(latitude) and _is_number(longitude)):
            raise FeedError(f"Could not match latitude/longitude for {entity_id}")

        return PersonLocation(name=name, status=status, coordinate=Coordinate(float(latitude), float(longitude)))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
