"""Lock-protected view of the latest presence state."""

import threading
from typing import Optional

from .models import PresenceSnapshot, PresenceState


class SharedPresenceView:
    """
    Latest state, person name and person status, written by the tracker and read by renderers.

    The lock is held only while copying values in or out, never across I/O.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state: Optional[PresenceState] = None
        self._person_name: Optional[str] = None
        self._person_status: Optional[str] = None

    def publish(
        self,
        state: PresenceState,
        person_name: Optional[str],
        person_status: Optional[str],
    ) -> None:
        """Replace state, name and status together."""
        with self._lock:
            self._state = state
            self._person_name = person_name
            self._person_status = person_status

    def snapshot(self) -> PresenceSnapshot:
        """Consistent copy of the current values."""
        with self._lock:
            return PresenceSnapshot(
                state=self._state,
                person_name=self._person_name,
                person_status=self._person_status,
            )

    @property
    def state(self) -> Optional[PresenceState]:
        with self._lock:
            return self._state
