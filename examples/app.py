#!/usr/bin/env python3
"""
Runs the transit tracker and renders its status to a PNG frame once per second.
Point an image viewer at the output file to watch the simulated panel.

Usage:
  python examples/app.py [output.png]
  python examples/app.py --find NAME
"""

import asyncio
import logging
import os
import sys

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))
from railpresence import ConfigError, ImageSurface, TransitRender, TransitTracker
from railpresence.render import status_text
from railpresence.stations import default_catalog

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)

logger = logging.getLogger(__name__)

RENDER_INTERVAL = 1


async def run(output_path: str) -> None:
    """Start the tracker and render frames until it stops."""
    tracker = TransitTracker.from_config()
    renderer = TransitRender(tracker.view)
    surface = ImageSurface()

    tracker.start()
    last_line = None
    try:
        while tracker.is_running:
            renderer.render(surface)
            surface.save(output_path)

            snapshot = tracker.view.snapshot()
            if snapshot.state is not None:
                line = f"{snapshot.person_name or 'Unknown'}: {status_text(snapshot)}"
                if line != last_line:
                    print(line)
                    last_line = line

            await asyncio.sleep(RENDER_INTERVAL)
    finally:
        tracker.close()

    # Surface the error that ended the tracker, if any
    if not tracker.task.cancelled() and tracker.task.exception() is not None:
        logger.error(f"Tracker stopped: {tracker.task.exception()}")


def find_stations(user_input: str) -> None:
    """Print the bundled stations whose stop id or name matches the input."""
    catalog = default_catalog()

    try:
        stations = [catalog.get_station(user_input)]
    except ValueError:
        stations = catalog.find_stations_by_name(user_input)

    if not stations:
        print(f"Station not found: '{user_input}'")
        sys.exit(1)

    print(f"Found {len(stations)} matches:")
    for station in stations:
        coordinate = station.coordinate
        print(f"  {station.name} ({station.stop_id}) {coordinate.latitude:.4f},{coordinate.longitude:.4f}")


def main():
    """Main entry point."""
    if len(sys.argv) > 2 and sys.argv[1] == "--find":
        find_stations(" ".join(sys.argv[2:]))
        return

    output_path = sys.argv[1] if len(sys.argv) > 1 else "transit.png"
    try:
        asyncio.run(run(output_path))
    except ConfigError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nGoodbye!")


if __name__ == "__main__":
    main()
