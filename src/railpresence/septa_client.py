"""SEPTA Regional Rail train position fetchers."""

import logging
from typing import Any, Dict, List

import requests

from .exceptions import FeedError
from .models import Coordinate, TrainPosition

logger = logging.getLogger(__name__)

TRAINVIEW_URL = "https://www3.septa.org/api/TrainView/index.php"
VEHICLE_POSITIONS_URL = "https://www3.septa.org/gtfsrt/septarail-pa-us/Vehicle/rtVehiclePosition.pb"


class TrainViewClient:
    """Fetches live Regional Rail positions from the SEPTA TrainView JSON API."""

    def __init__(self, url: str = TRAINVIEW_URL, timeout: float = 10):
        self.url = url
        self.timeout = timeout
        self.session = requests.Session()

    def get_trains(self) -> List[TrainPosition]:
        """
        Get the current train positions in feed order.

        Raises:
            FeedError: If the request fails or a record lacks train number or position.
        """
        logger.debug(f"Fetching {self.url}")
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            records = response.json()
        except (requests.RequestException, ValueError) as e:
            raise FeedError(f"Failed to fetch TrainView: {e}") from e

        if not isinstance(records, list):
            raise FeedError("TrainView returned an unexpected payload")

        trains = [self._parse_train(record) for record in records]
        logger.debug(f"Parsed {len(trains)} trains")
        return trains

    @staticmethod
    def _parse_train(record: Dict[str, Any]) -> TrainPosition:
        """Parse one TrainView record. Latitude and longitude arrive as strings."""
        try:
            train_id = record["trainno"]
            latitude = float(record["lat"])
            longitude = float(record["lon"])
        except (KeyError, TypeError, ValueError) as e:
            raise FeedError(f"Invalid TrainView record {record!r}: {e}") from e

        if train_id is None or train_id == "":
            raise FeedError(f"TrainView record without train number: {record!r}")

        return TrainPosition(train_id=str(train_id), coordinate=Coordinate(latitude, longitude))


class VehiclePositionClient:
    """Fetches live Regional Rail positions from a GTFS-Realtime VehiclePositions feed."""

    def __init__(self, url: str = VEHICLE_POSITIONS_URL, timeout: float = 10):
        self.url = url
        self.timeout = timeout
        self.session = requests.Session()

    def get_trains(self) -> List[TrainPosition]:
        """
        Get the current train positions in feed order.

        Raises:
            FeedError: If the request fails or the protobuf cannot be decoded.
        """
        logger.debug(f"Fetching {self.url}")
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FeedError(f"Failed to fetch vehicle positions: {e}") from e

        return self._parse_vehicle_positions(response.content)

    @staticmethod
    def _parse_vehicle_positions(feed_data: bytes) -> List[TrainPosition]:
        """
        Parse train positions from a GTFS-Realtime feed.

        The train id is the vehicle label, falling back to the trip id and then
        the entity id. Entities without a vehicle position are skipped.
        """
        from google.protobuf.message import DecodeError
        from google.transit import gtfs_realtime_pb2

        feed = gtfs_realtime_pb2.FeedMessage()
        try:
            feed.ParseFromString(feed_data)
        except DecodeError as e:
            raise FeedError(f"Failed to parse vehicle positions: {e}") from e

        trains: List[TrainPosition] = []
        for entity in feed.entity:
            if not entity.HasField("vehicle"):
                continue

            vehicle = entity.vehicle
            if not vehicle.HasField("position"):
                continue

            train_id = vehicle.vehicle.label or vehicle.trip.trip_id or entity.id
            trains.append(
                TrainPosition(
                    train_id=train_id,
                    coordinate=Coordinate(vehicle.position.latitude, vehicle.position.longitude),
                )
            )

        logger.debug(f"Parsed {len(trains)} vehicle positions")
        return trains
