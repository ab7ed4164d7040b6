"""Data models for the rail presence tracker."""

from dataclasses import dataclass, field
from typing import Dict, Optional, Union


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees."""
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Station:
    """Represents a regional rail station from the station catalog."""
    stop_id: str
    name: str
    coordinate: Coordinate

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class TrainPosition:
    """A live train position taken from a train feed snapshot."""
    train_id: str
    coordinate: Coordinate


@dataclass(frozen=True)
class PersonLocation:
    """Location and status of the tracked person."""
    name: Optional[str]
    status: Optional[str]
    coordinate: Coordinate


@dataclass(frozen=True)
class TrainEncounter:
    """First times a train was seen while the person was at a station."""
    first_inside_station: Optional[float] = None  # Monotonic seconds
    first_outside_station: Optional[float] = None

    @property
    def matched(self) -> bool:
        """True once the train has been seen both inside and outside the station radius."""
        return self.first_inside_station is not None and self.first_outside_station is not None


@dataclass(frozen=True)
class NoStatus:
    """
    The person is neither at a station nor on a train.

    Attributes:
        first_seen: stop_id -> time the person entered the station's radius
    """
    first_seen: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class AtStation:
    """
    The person is waiting at a station.

    Attributes:
        station: Station the person is at
        train_encounters: train_id -> TrainEncounter for trains near the person
        left_at: Time the person was first seen outside the station radius
    """
    station: Station
    train_encounters: Dict[str, TrainEncounter] = field(default_factory=dict)
    left_at: Optional[float] = None


@dataclass(frozen=True)
class OnTrain:
    """The person is riding a train."""
    train_id: str
    last_seen: float


PresenceState = Union[NoStatus, AtStation, OnTrain]


@dataclass(frozen=True)
class PresenceSnapshot:
    """Copy of the shared presence view handed to readers."""
    state: Optional[PresenceState]
    person_name: Optional[str] = None
    person_status: Optional[str] = None
