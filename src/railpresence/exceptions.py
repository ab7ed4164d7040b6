"""Exceptions raised by the rail presence tracker."""


class RailPresenceError(Exception):
    """Base class for all tracker errors."""


class ConfigError(RailPresenceError):
    """The configuration file is missing, unreadable or invalid."""


class FeedError(RailPresenceError):
    """A location or train feed failed or returned incomplete data."""


class GeoResolutionError(RailPresenceError):
    """A coordinate could not be resolved or a distance could not be computed."""


class DrawError(RailPresenceError):
    """The render surface rejected a draw call."""
