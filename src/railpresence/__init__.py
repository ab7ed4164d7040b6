"""RailPresence - Infer whether a person is at a SEPTA station or riding a train."""

__version__ = "0.1.0"

from .models import Coordinate, Station, TrainPosition, PersonLocation, NoStatus, AtStation, OnTrain
from .exceptions import RailPresenceError, ConfigError, FeedError, GeoResolutionError, DrawError
from .stations import StationCatalog, default_catalog
from .state_machine import PresenceStateMachine
from .presence_view import SharedPresenceView
from .transit_tracker import TransitTracker
from .render import TransitRender, ImageSurface

__all__ = [
    "TransitTracker",
    "PresenceStateMachine",
    "StationCatalog",
    "default_catalog",
    "SharedPresenceView",
    "TransitRender",
    "ImageSurface",
    "Coordinate",
    "Station",
    "TrainPosition",
    "PersonLocation",
    "NoStatus",
    "AtStation",
    "OnTrain",
    "RailPresenceError",
    "ConfigError",
    "FeedError",
    "GeoResolutionError",
    "DrawError",
]
