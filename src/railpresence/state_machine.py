"""Presence state machine for inferring whether a person is at a station or on a train."""

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from .geofence import distance_meters, in_circle
from .models import (
    AtStation,
    Coordinate,
    NoStatus,
    OnTrain,
    PresenceState,
    Station,
    TrainEncounter,
    TrainPosition,
)
from .stations import StationCatalog, default_catalog

logger = logging.getLogger(__name__)

# Time the person has to stay within a station's radius to be considered at the station
NO_STATUS_TO_AT_STATION = 30.0

# Radius around a station the person must be within to be considered at the station
AT_STATION_ENTER_RADIUS_M = 200.0
AT_STATION_LEAVE_RADIUS_M = 200.0

# Time the person has to be outside the station's radius to go from AtStation to NoStatus
AT_STATION_TO_NO_STATUS_TIMEOUT = 60.0

ON_TRAIN_ENTER_RADIUS_M = 400.0
ON_TRAIN_REMAIN_RADIUS_M = 400.0

# Time without contact with the train before OnTrain is given up
ON_TRAIN_TO_NO_STATUS_TIMEOUT = 300.0


class PresenceStateMachine:
    """
    Pure transition function over NoStatus, AtStation and OnTrain.

    Every call to advance() returns a new state value; the state passed in is never
    mutated, so per-state bookkeeping is discarded whenever the variant changes.
    Times are monotonic seconds.
    """

    def __init__(self, catalog: Optional[StationCatalog] = None):
        self.catalog = catalog if catalog is not None else default_catalog()

    def advance(
        self,
        state: Optional[PresenceState],
        now: float,
        person: Coordinate,
        trains: Sequence[TrainPosition],
    ) -> PresenceState:
        """
        Compute the next state.

        Args:
            state: Current state, or None before the first tick (treated as NoStatus).
            now: Current monotonic time in seconds.
            person: The person's current coordinate.
            trains: Live train positions in feed order.

        Returns:
            The next state.

        Raises:
            GeoResolutionError: If a station or train coordinate cannot be resolved.
        """
        if state is None:
            state = NoStatus()

        if isinstance(state, NoStatus):
            return self._advance_no_status(state, now, person)
        if isinstance(state, AtStation):
            return self._advance_at_station(state, now, person, trains)
        if isinstance(state, OnTrain):
            return self._advance_on_train(state, now, person, trains)

        raise TypeError(f"Unknown presence state {state!r}")

    def _advance_no_status(self, state: NoStatus, now: float, person: Coordinate) -> PresenceState:
        first_seen: Dict[str, float] = dict(state.first_seen)
        eligible_stations: List[Station] = []

        for station in self.catalog:
            station_location = self.catalog.coordinate_of(station)

            if in_circle(station_location, person, AT_STATION_ENTER_RADIUS_M):
                first_encounter = first_seen.get(station.stop_id)
                if first_encounter is None:
                    first_seen[station.stop_id] = now
                elif now - first_encounter >= NO_STATUS_TO_AT_STATION:
                    eligible_stations.append(station)
            else:
                first_seen.pop(station.stop_id, None)

        if not eligible_stations:
            return NoStatus(first_seen=first_seen)

        # min() keeps the first of equally close stations, i.e. catalog order
        station = min(
            eligible_stations,
            key=lambda s: distance_meters(person, self.catalog.coordinate_of(s)),
        )
        logger.debug(f"Transitioning from NoStatus to AtStation (station: {station})")
        return AtStation(station=station)

    def _advance_at_station(
        self,
        state: AtStation,
        now: float,
        person: Coordinate,
        trains: Sequence[TrainPosition],
    ) -> PresenceState:
        station_location = self.catalog.coordinate_of(state.station)

        left_at = state.left_at
        if in_circle(station_location, person, AT_STATION_LEAVE_RADIUS_M):
            left_at = None
        elif left_at is None:
            left_at = now
        elif now - left_at > AT_STATION_TO_NO_STATUS_TIMEOUT:
            logger.debug(f"Transitioning from AtStation to NoStatus (station: {state.station})")
            return NoStatus()

        encounters: Dict[str, TrainEncounter] = dict(state.train_encounters)

        for train in trains:
            if not in_circle(train.coordinate, person, ON_TRAIN_ENTER_RADIUS_M):
                encounters.pop(train.train_id, None)
                continue

            encounter = encounters.get(train.train_id, TrainEncounter())
            if in_circle(train.coordinate, person, AT_STATION_LEAVE_RADIUS_M):
                if encounter.first_inside_station is None:
                    encounter = replace(encounter, first_inside_station=now)
            elif encounter.first_outside_station is None:
                encounter = replace(encounter, first_outside_station=now)
            encounters[train.train_id] = encounter

            # First matched train in feed order wins
            if encounter.matched:
                logger.debug(
                    f"Transitioning from AtStation to OnTrain "
                    f"(station: {state.station}, train: {train.train_id})"
                )
                return OnTrain(train_id=train.train_id, last_seen=now)

        return AtStation(station=state.station, train_encounters=encounters, left_at=left_at)

    def _advance_on_train(
        self,
        state: OnTrain,
        now: float,
        person: Coordinate,
        trains: Sequence[TrainPosition],
    ) -> PresenceState:
        current_train = next((t for t in trains if t.train_id == state.train_id), None)

        if current_train is None:
            logger.debug(f"Transitioning from OnTrain to NoStatus (train: {state.train_id} left the feed)")
            return NoStatus()

        if in_circle(current_train.coordinate, person, ON_TRAIN_REMAIN_RADIUS_M):
            return OnTrain(train_id=state.train_id, last_seen=now)

        if now - state.last_seen <= ON_TRAIN_TO_NO_STATUS_TIMEOUT:
            return state

        # First containing station in catalog order, no distance tie-break
        for station in self.catalog:
            if in_circle(self.catalog.coordinate_of(station), person, AT_STATION_ENTER_RADIUS_M):
                logger.debug(
                    f"Transitioning from OnTrain to AtStation "
                    f"(station: {station}, train: {state.train_id})"
                )
                return AtStation(station=station)

        logger.debug(f"Transitioning from OnTrain to NoStatus (train: {state.train_id})")
        return NoStatus()
