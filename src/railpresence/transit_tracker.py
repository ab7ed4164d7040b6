"""Background tracker that polls the feeds and drives the presence state machine."""

import asyncio
import logging
import threading
from time import monotonic
from typing import List, Optional, Protocol, Tuple

from .config import TransitConfig, read_config
from .home_assistant_client import HomeAssistantClient
from .models import PersonLocation, TrainPosition
from .presence_view import SharedPresenceView
from .septa_client import VEHICLE_POSITIONS_URL, TrainViewClient, VehiclePositionClient
from .state_machine import PresenceStateMachine
from .stations import StationCatalog

logger = logging.getLogger(__name__)

# Seconds between ticks
UPDATE_INTERVAL = 15


class LocationProvider(Protocol):
    def get_location(self, entity_id: str) -> PersonLocation: ...


class TrainProvider(Protocol):
    def get_trains(self) -> List[TrainPosition]: ...


class TransitTracker:
    """
    Polls the person's location and the live train positions and publishes the inferred state.

    Each tick fetches both feeds concurrently, waits for both, advances the state
    machine and publishes the result into a SharedPresenceView. Any failure ends
    the polling task for good; the last published snapshot stays readable.

    stop() asks the loop to exit before its next tick. abort() cancels it at its
    current suspension point. close() does both and is meant for teardown.
    """

    def __init__(
        self,
        config: TransitConfig,
        location_provider: Optional[LocationProvider] = None,
        train_provider: Optional[TrainProvider] = None,
        catalog: Optional[StationCatalog] = None,
        view: Optional[SharedPresenceView] = None,
    ):
        """
        Initialize the tracker.

        Args:
            config: Tracker configuration.
            location_provider: Defaults to a HomeAssistantClient built from config.
            train_provider: Defaults to the train feed selected in config.
            catalog: Station catalog. Defaults to the bundled SEPTA stations.
            view: View to publish into. A new one is created if omitted.
        """
        self.config = config
        self.location_provider = location_provider or HomeAssistantClient(
            config.home_assistant_url,
            config.home_assistant_bearer_token,
        )
        self.train_provider = train_provider or self._train_provider_for(config)
        self.state_machine = PresenceStateMachine(catalog)
        self.view = view or SharedPresenceView()

        self._alive = threading.Event()
        self._alive.set()
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(cls, **kwargs) -> "TransitTracker":
        """Create a tracker from $HOME/transit.yaml."""
        return cls(read_config(), **kwargs)

    @staticmethod
    def _train_provider_for(config: TransitConfig) -> TrainProvider:
        if config.train_feed == "gtfs-rt":
            return VehiclePositionClient(config.gtfs_rt_url or VEHICLE_POSITIONS_URL)
        return TrainViewClient()

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Spawn the polling task on the running event loop."""
        if self.is_running:
            raise RuntimeError("Tracker is already running")

        self._alive.set()
        self._task = asyncio.get_running_loop().create_task(self.run())
        logger.info(f"Started tracking {self.config.person_entity_id}")
        return self._task

    def stop(self) -> None:
        """Let the current tick finish, then exit the loop."""
        self._alive.clear()

    def abort(self) -> None:
        """Cancel the polling task at its current suspension point."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def close(self) -> None:
        self.stop()
        self.abort()
        logger.info(f"Stopped tracking {self.config.person_entity_id}")

    async def run(self) -> None:
        """Poll until stopped. Feed and geofence errors propagate and end the loop."""
        while self._alive.is_set():
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Transit update failed, stopping tracker: {e}")
                raise

            await asyncio.sleep(UPDATE_INTERVAL)

    async def tick(self) -> None:
        """Fetch both feeds, advance the state machine and publish the result."""
        person, trains = await self._fetch()

        now = monotonic()
        state = self.state_machine.advance(self.view.state, now, person.coordinate, trains)
        self.view.publish(state, person.name, person.status)

    async def _fetch(self) -> Tuple[PersonLocation, List[TrainPosition]]:
        location_result, trains_result = await asyncio.gather(
            asyncio.to_thread(self.location_provider.get_location, self.config.person_entity_id),
            asyncio.to_thread(self.train_provider.get_trains),
            return_exceptions=True,
        )

        # Both fetches have completed here; report the first failure
        for result in (location_result, trains_result):
            if isinstance(result, BaseException):
                raise result

        return location_result, trains_result
