"""Tests for the TransitTracker polling loop."""

import asyncio
import math
import unittest
from unittest.mock import patch, MagicMock
import sys
from pathlib import Path

# Add src to path so we can import railpresence
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from railpresence.config import TransitConfig
from railpresence.exceptions import FeedError, GeoResolutionError
from railpresence.home_assistant_client import HomeAssistantClient
from railpresence.models import AtStation, Coordinate, NoStatus, PersonLocation, Station
from railpresence.septa_client import TrainViewClient, VehiclePositionClient
from railpresence.stations import StationCatalog
from railpresence.transit_tracker import TransitTracker

STATION = Station(stop_id="suburban", name="Suburban Station", coordinate=Coordinate(39.9540, -75.1676))

CONFIG = TransitConfig(
    person_entity_id="person.alice",
    home_assistant_url="http://ha.local:8123",
    home_assistant_bearer_token="secret",
)

AT_STATION = PersonLocation(name="Alice", status="away", coordinate=STATION.coordinate)


class TestTransitTrackerTick(unittest.IsolatedAsyncioTestCase):
    """Test a single fetch-and-advance cycle."""

    def setUp(self):
        """Set up test fixtures."""
        self.location_provider = MagicMock()
        self.location_provider.get_location.return_value = AT_STATION
        self.train_provider = MagicMock()
        self.train_provider.get_trains.return_value = []

        self.tracker = TransitTracker(
            CONFIG,
            location_provider=self.location_provider,
            train_provider=self.train_provider,
            catalog=StationCatalog([STATION]),
        )

    @patch("railpresence.transit_tracker.monotonic")
    async def test_tick_publishes_state(self, mock_monotonic):
        """Test that a tick publishes state, name and status together."""
        mock_monotonic.return_value = 100.0

        await self.tracker.tick()

        snapshot = self.tracker.view.snapshot()
        self.assertEqual(snapshot.state, NoStatus(first_seen={"suburban": 100.0}))
        self.assertEqual(snapshot.person_name, "Alice")
        self.assertEqual(snapshot.person_status, "away")
        self.location_provider.get_location.assert_called_once_with("person.alice")

    @patch("railpresence.transit_tracker.monotonic")
    async def test_ticks_reach_at_station(self, mock_monotonic):
        """Test that consecutive ticks carry state forward."""
        mock_monotonic.side_effect = [0.0, 31.0]

        await self.tracker.tick()
        await self.tracker.tick()

        self.assertEqual(self.tracker.view.state, AtStation(station=STATION))

    async def test_failed_fetch_commits_nothing(self):
        """Test that a feed failure leaves the view untouched after both fetches complete."""
        self.location_provider.get_location.side_effect = FeedError("no fix")

        with self.assertRaises(FeedError):
            await self.tracker.tick()

        self.assertIsNone(self.tracker.view.state)
        self.train_provider.get_trains.assert_called_once()

    async def test_failed_train_feed(self):
        """Test that a train feed failure is raised as well."""
        self.train_provider.get_trains.side_effect = FeedError("TrainView down")

        with self.assertRaises(FeedError):
            await self.tracker.tick()

        self.assertIsNone(self.tracker.view.state)


class TestTransitTrackerLoop(unittest.IsolatedAsyncioTestCase):
    """Test the lifetime of the polling loop."""

    def setUp(self):
        """Set up test fixtures."""
        self.location_provider = MagicMock()
        self.location_provider.get_location.return_value = AT_STATION
        self.train_provider = MagicMock()
        self.train_provider.get_trains.return_value = []

        self.tracker = TransitTracker(
            CONFIG,
            location_provider=self.location_provider,
            train_provider=self.train_provider,
            catalog=StationCatalog([STATION]),
        )

    async def _wait_for_state(self):
        for _ in range(500):
            if self.tracker.view.state is not None:
                return
            await asyncio.sleep(0.01)
        self.fail("Tracker never published a state")

    @patch("railpresence.transit_tracker.UPDATE_INTERVAL", 0)
    async def test_failure_ends_loop_and_keeps_last_snapshot(self):
        """Test that an error stops the loop for good while the last state stays readable."""
        self.location_provider.get_location.side_effect = [AT_STATION, FeedError("no fix")]

        with self.assertLogs("railpresence.transit_tracker", level="ERROR"):
            with self.assertRaises(FeedError):
                await self.tracker.run()

        self.assertIsInstance(self.tracker.view.state, NoStatus)
        self.assertEqual(self.tracker.view.snapshot().person_name, "Alice")
        self.assertEqual(self.location_provider.get_location.call_count, 2)

    @patch("railpresence.transit_tracker.UPDATE_INTERVAL", 0)
    @patch("railpresence.transit_tracker.monotonic")
    async def test_unresolvable_location_ends_loop(self, mock_monotonic):
        """Test that a non-finite person coordinate stops the loop and publishes nothing."""
        mock_monotonic.side_effect = [0.0, 15.0]
        self.location_provider.get_location.side_effect = [
            AT_STATION,
            PersonLocation(name="Bob", status="home", coordinate=Coordinate(math.nan, -75.1676)),
        ]

        with self.assertLogs("railpresence.transit_tracker", level="ERROR"):
            with self.assertRaises(GeoResolutionError):
                await self.tracker.run()

        snapshot = self.tracker.view.snapshot()
        self.assertEqual(snapshot.state, NoStatus(first_seen={"suburban": 0.0}))
        self.assertEqual(snapshot.person_name, "Alice")
        self.assertEqual(snapshot.person_status, "away")

    @patch("railpresence.transit_tracker.UPDATE_INTERVAL", 0)
    async def test_stop_finishes_current_tick(self):
        """Test that stop() lets the in-flight tick publish before the loop exits."""
        def get_trains():
            self.tracker.stop()
            return []

        self.train_provider.get_trains.side_effect = get_trains

        await self.tracker.run()

        self.assertIsNotNone(self.tracker.view.state)
        self.assertEqual(self.location_provider.get_location.call_count, 1)

    async def test_abort_cancels_task(self):
        """Test that abort() cancels the task while it sleeps between ticks."""
        task = self.tracker.start()
        await self._wait_for_state()
        self.assertTrue(self.tracker.is_running)

        self.tracker.abort()
        with self.assertRaises(asyncio.CancelledError):
            await task

        self.assertFalse(self.tracker.is_running)
        self.assertIsNotNone(self.tracker.view.state)

    async def test_close(self):
        """Test that close() stops and cancels the tracker."""
        task = self.tracker.start()
        await self._wait_for_state()

        self.tracker.close()
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertFalse(self.tracker.is_running)

    async def test_start_twice(self):
        """Test that a running tracker can not be started again."""
        self.tracker.start()
        try:
            with self.assertRaises(RuntimeError):
                self.tracker.start()
        finally:
            self.tracker.close()


class TestTransitTrackerConstruction(unittest.TestCase):
    """Test default providers and config loading."""

    def test_default_providers(self):
        """Test that the default providers follow the config."""
        tracker = TransitTracker(CONFIG)

        self.assertIsInstance(tracker.location_provider, HomeAssistantClient)
        self.assertEqual(tracker.location_provider.base_url, "http://ha.local:8123")
        self.assertIsInstance(tracker.train_provider, TrainViewClient)
        self.assertIsNone(tracker.view.state)
        self.assertFalse(tracker.is_running)

    def test_gtfs_rt_provider(self):
        """Test selecting the GTFS-Realtime train feed."""
        config = TransitConfig(
            person_entity_id="person.alice",
            home_assistant_url="http://ha.local:8123",
            home_assistant_bearer_token="secret",
            train_feed="gtfs-rt",
            gtfs_rt_url="http://feeds.local/vp.pb",
        )
        tracker = TransitTracker(config)

        self.assertIsInstance(tracker.train_provider, VehiclePositionClient)
        self.assertEqual(tracker.train_provider.url, "http://feeds.local/vp.pb")

    @patch("railpresence.transit_tracker.read_config")
    def test_from_config(self, mock_read_config):
        """Test building a tracker from the config file."""
        mock_read_config.return_value = CONFIG

        tracker = TransitTracker.from_config(train_provider=MagicMock())

        self.assertIs(tracker.config, CONFIG)
        mock_read_config.assert_called_once()


if __name__ == "__main__":
    unittest.main()
