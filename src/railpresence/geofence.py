"""Great-circle geofence helpers."""

import math

from .exceptions import GeoResolutionError
from .models import Coordinate

EARTH_RADIUS_M = 6_371_000


def _check(coordinate: Coordinate) -> None:
    try:
        finite = math.isfinite(coordinate.latitude) and math.isfinite(coordinate.longitude)
    except (AttributeError, TypeError) as e:
        raise GeoResolutionError(f"Invalid coordinate {coordinate!r}: {e}") from e
    if not finite:
        raise GeoResolutionError(f"Non-finite coordinate {coordinate!r}")


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """
    Distance in meters between two coordinates using the haversine formula.

    Raises:
        GeoResolutionError: If either coordinate is not finite.
    """
    _check(a)
    _check(b)

    lat1, lon1, lat2, lon2 = map(math.radians, [a.latitude, a.longitude, b.latitude, b.longitude])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # Clamp rounding noise so antipodal points do not fall outside asin's domain
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, h)))


def in_circle(center: Coordinate, point: Coordinate, radius_meters: float) -> bool:
    """Check if point lies within radius_meters of center."""
    return distance_meters(center, point) <= radius_meters
