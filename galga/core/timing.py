"""Monotonic timers used by the control loop."""
from __future__ import annotations

import time
from typing import Callable, Optional

Clock = Callable[[], float]


class AlarmTimer:
    """Stopwatch measuring how long the alarm has been active."""

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._started_at: Optional[float] = None

    def reset(self) -> None:
        """Restart counting from zero."""

        self._started_at = self._clock()

    def clear(self) -> None:
        """Stop the stopwatch; ``elapsed()`` reads zero until the next reset."""

        self._started_at = None

    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return max(0.0, self._clock() - self._started_at)

    @property
    def running(self) -> bool:
        return self._started_at is not None


class BlinkTimer:
    """Half-period tracker that tells the loop when to flip an indicator."""

    def __init__(self, half_period: float, clock: Clock = time.monotonic) -> None:
        if half_period <= 0:
            raise ValueError("half_period must be positive")
        self._half_period = float(half_period)
        self._clock = clock
        self._last_flip: Optional[float] = None

    def due(self) -> bool:
        now = self._clock()
        if self._last_flip is not None and now - self._last_flip < self._half_period:
            return False
        self._last_flip = now
        return True

    def reset(self) -> None:
        self._last_flip = None

    @property
    def half_period(self) -> float:
        return self._half_period


__all__ = ["AlarmTimer", "BlinkTimer", "Clock"]
