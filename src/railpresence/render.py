"""Rendering of the presence view onto a pixel surface."""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from .exceptions import DrawError
from .models import AtStation, NoStatus, OnTrain, PresenceSnapshot
from .presence_view import SharedPresenceView

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]

BLACK: Color = (0, 0, 0)
WHITE: Color = (255, 255, 255)

NAME_FONT = "6x10"
STATUS_FONT = "5x7"

NAME_POSITION = (0, 15)
STATUS_POSITION = (0, 40)

PLACEHOLDER = "Unknown"


class Surface(ABC):
    """Pixel surface the renderer paints on. Both calls are synchronous and raise DrawError on failure."""

    @abstractmethod
    def fill(self, color: Color) -> None:
        """Fill the whole surface with a solid color."""

    @abstractmethod
    def draw_text(self, text: str, position: Tuple[int, int], font: str, color: Color) -> None:
        """Draw left-aligned text with its baseline at position."""


def status_text(snapshot: PresenceSnapshot) -> str:
    """Second display line for a snapshot."""
    state = snapshot.state
    if isinstance(state, AtStation):
        return f"At Station {state.station.name}"
    if isinstance(state, OnTrain):
        return f"On Train {state.train_id}"
    if isinstance(state, NoStatus):
        return snapshot.person_status if snapshot.person_status is not None else PLACEHOLDER
    raise TypeError(f"Unknown presence state {state!r}")


class TransitRender:
    """Paints the person's name and transit status from a SharedPresenceView."""

    def __init__(self, view: SharedPresenceView):
        self.view = view

    def render(self, surface: Surface) -> None:
        """
        Draw the latest snapshot.

        Does nothing until the tracker has published a state. Errors raised by
        the surface propagate unchanged.
        """
        snapshot = self.view.snapshot()
        if snapshot.state is None:
            return

        surface.fill(BLACK)

        name = snapshot.person_name if snapshot.person_name is not None else PLACEHOLDER
        surface.draw_text(name, NAME_POSITION, NAME_FONT, WHITE)
        surface.draw_text(status_text(snapshot), STATUS_POSITION, STATUS_FONT, WHITE)


# Pixel sizes approximating the fixed-cell fonts of LED matrix panels
FONT_SIZES: Dict[str, int] = {
    "6x10": 10,
    "5x7": 7,
}


class ImageSurface(Surface):
    """Surface backed by a Pillow image, e.g. for a simulated panel or saving frames to disk."""

    def __init__(self, width: int = 256, height: int = 128, image: Optional[Image.Image] = None):
        self.image = image if image is not None else Image.new("RGB", (width, height), BLACK)
        self._draw = ImageDraw.Draw(self.image)
        self._fonts = {}

    def _font(self, font: str):
        if font not in FONT_SIZES:
            raise DrawError(f"Unknown font {font}")
        if font not in self._fonts:
            self._fonts[font] = ImageFont.load_default(size=FONT_SIZES[font])
        return self._fonts[font]

    def fill(self, color: Color) -> None:
        try:
            self._draw.rectangle([(0, 0), self.image.size], fill=color)
        except (ValueError, TypeError) as e:
            raise DrawError(f"Failed to fill surface: {e}") from e

    def draw_text(self, text: str, position: Tuple[int, int], font: str, color: Color) -> None:
        try:
            self._draw.text(position, text, font=self._font(font), fill=color, anchor="ls")
        except (ImportError, OSError, ValueError, TypeError) as e:
            raise DrawError(f"Failed to draw text '{text}': {e}") from e

    def save(self, path: str) -> None:
        self.image.save(path)
