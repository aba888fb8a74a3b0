"""
ScheduleWatch Debouncer.

Collapses bursts of file system events into single change signals.
Requires Python 3.11+.
"""

import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from utils.logger import LoggerMixin


class Debouncer(LoggerMixin):
    """
    Leading-edge debouncer for file system events.

    The first event of a burst fires the callback immediately. Any further
    event arriving within the window after that emission is discarded, so
    the echo of a multi-write save produces one signal. The first event
    after the window elapses fires again.
    """

    def __init__(
        self,
        window_ms: int = 500,
        callback: Callable[[Path, str], Any] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the debouncer.

        Args:
            window_ms: Suppression window in milliseconds after each emission
            callback: Function called with (path, change_type) on emission
            clock: Monotonic time source in seconds
        """
        self._window = window_ms / 1000.0
        self._callback = callback
        self._clock = clock
        self._last_emitted: float | None = None
        self._lock = threading.Lock()

    def debounce(self, path: Path, change_type: str) -> bool:
        """
        Offer an event to the debounce gate.

        Args:
            path: Path of the changed file
            change_type: Kind of change (created, modified, moved)

        Returns:
            True if the event passed the gate and the callback was fired
        """
        with self._lock:
            now = self._clock()
            if self._last_emitted is not None and now - self._last_emitted < self._window:
                return False
            self._last_emitted = now

        self.log.info("file_change_detected", path=str(path), change_type=change_type)

        if self._callback is not None:
            try:
                self._callback(path, change_type)
            except Exception as e:
                self.log.error("debounce_callback_failed", path=str(path), error=str(e))
        return True

    def reset(self) -> None:
        """Re-arm the gate so the next event emits immediately."""
        with self._lock:
            self._last_emitted = None

    @property
    def window_ms(self) -> int:
        """Suppression window in milliseconds."""
        return round(self._window * 1000)

    @property
    def last_emitted(self) -> float | None:
        """Clock reading of the most recent emission."""
        return self._last_emitted
