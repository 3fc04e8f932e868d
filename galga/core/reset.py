"""Reset request flag shared between the edge callback and the control loop."""
from __future__ import annotations

import threading

from galga.logging_utils import get_logger

LOGGER = get_logger("reset")


class ResetSignal:
    """Single-writer/single-reader reset flag.

    ``request()`` runs in the interrupt context (the GPIO edge callback
    thread) and only raises the flag. The control loop calls ``consume()``
    before each handler and performs the actual reset in its own thread.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending = False
        self._edge_count = 0

    def request(self) -> bool:
        """Record a rising edge. Returns False if a reset is already pending."""

        with self._lock:
            self._edge_count += 1
            if self._pending:
                return False
            self._pending = True
        LOGGER.info("Reset requested")
        return True

    def consume(self) -> bool:
        """Atomically test and clear the pending flag."""

        with self._lock:
            if not self._pending:
                return False
            self._pending = False
            return True

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending

    @property
    def edge_count(self) -> int:
        with self._lock:
            return self._edge_count

    def __call__(self, *_args) -> None:
        # GPIO callbacks receive the channel number.
        self.request()


__all__ = ["ResetSignal"]
