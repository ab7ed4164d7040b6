"""Station catalog loaded from GTFS stops data."""

import csv
import io
import logging
import math
from importlib import resources
from typing import Dict, Iterator, List, Optional

from .exceptions import GeoResolutionError
from .models import Coordinate, Station

logger = logging.getLogger(__name__)

# Sentinel for stations that cannot be mapped to a known stop
UNKNOWN = Station(stop_id="unknown", name="Unknown", coordinate=Coordinate(math.nan, math.nan))


class StationCatalog:
    """Ordered, indexed set of known stations."""

    def __init__(self, stations: Optional[List[Station]] = None):
        """
        Initialize the catalog.

        Args:
            stations: Stations in catalog order. Iteration order is used to break
                      ties between equally close stations.
        """
        self.stations: Dict[str, Station] = {}
        self.stations_by_name: Dict[str, List[str]] = {}  # name -> [stop_ids]

        for station in stations or []:
            self._add(station)

    @classmethod
    def from_csv(cls, csv_content: str) -> "StationCatalog":
        """Build a catalog from the contents of a GTFS stops.txt file."""
        catalog = cls()
        catalog._load_stops(csv_content)
        return catalog

    @classmethod
    def from_file(cls, stops_path: str) -> "StationCatalog":
        """Build a catalog from a local GTFS stops.txt file."""
        logger.info(f"Loading stations from {stops_path}")
        with open(stops_path, "r", encoding="utf-8") as f:
            return cls.from_csv(f.read())

    def _load_stops(self, csv_content: str) -> None:
        """
        Parse stops.txt and create Station objects.

        Raises:
            GeoResolutionError: If a row's latitude or longitude is not a number.
        """
        reader = csv.DictReader(io.StringIO(csv_content))

        for row in reader:
            stop_id = row["stop_id"]
            try:
                coordinate = Coordinate(float(row["stop_lat"]), float(row["stop_lon"]))
            except (TypeError, ValueError) as e:
                raise GeoResolutionError(f"Invalid coordinate for stop {stop_id}: {e}") from e

            self._add(Station(stop_id=stop_id, name=row["stop_name"], coordinate=coordinate))

        logger.debug(f"Loaded {len(self.stations)} stations")

    def _add(self, station: Station) -> None:
        if station.stop_id == UNKNOWN.stop_id:
            return
        self.stations[station.stop_id] = station
        self.stations_by_name.setdefault(station.name, []).append(station.stop_id)

    def __iter__(self) -> Iterator[Station]:
        """Iterate over geofence-able stations in catalog order (sentinel excluded)."""
        return iter(self.stations.values())

    def __len__(self) -> int:
        return len(self.stations)

    def get_station(self, stop_id: str) -> Station:
        """Get station by stop_id."""
        if stop_id == UNKNOWN.stop_id:
            return UNKNOWN
        if stop_id not in self.stations:
            raise ValueError(f"Station {stop_id} not found")
        return self.stations[stop_id]

    def find_stations_by_name(self, name: str) -> List[Station]:
        """Find stations by name (partial match)."""
        results = []
        name_lower = name.lower()

        for station_name, stop_ids in self.stations_by_name.items():
            if name_lower in station_name.lower():
                for stop_id in stop_ids:
                    results.append(self.stations[stop_id])

        return results

    def coordinate_of(self, station: Station) -> Coordinate:
        """
        Resolve the coordinate of a catalog station.

        Raises:
            GeoResolutionError: For the UNKNOWN sentinel, a station that is not in
                this catalog, or a non-finite coordinate.
        """
        if station.stop_id == UNKNOWN.stop_id:
            raise GeoResolutionError("The unknown station has no coordinate")
        if station.stop_id not in self.stations:
            raise GeoResolutionError(f"Station {station.stop_id} is not in the catalog")

        coordinate = self.stations[station.stop_id].coordinate
        if not (math.isfinite(coordinate.latitude) and math.isfinite(coordinate.longitude)):
            raise GeoResolutionError(f"Station {station.stop_id} has no usable coordinate")
        return coordinate


_DEFAULT_CATALOG: Optional[StationCatalog] = None


def default_catalog() -> StationCatalog:
    """SEPTA Regional Rail stations bundled with the package (cached after first call)."""
    global _DEFAULT_CATALOG

    if _DEFAULT_CATALOG is None:
        csv_content = resources.files("railpresence").joinpath("data/stops.txt").read_text(encoding="utf-8")
        _DEFAULT_CATALOG = StationCatalog.from_csv(csv_content)
    return _DEFAULT_CATALOG
