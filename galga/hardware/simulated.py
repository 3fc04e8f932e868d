"""In-memory bench used by ``galga --simulate`` and the test-suite."""
from __future__ import annotations

import random
import threading
from collections import deque
from typing import Callable, Deque, Optional, Tuple

from galga.config import defaults
from galga.hardware.base import ActuatorPanel, Indicator, SensorError, Tint, clamp_voltage, validate_tint

# long --simulate sessions keep only the most recent writes and frames
HISTORY_LIMIT = 256


class SimulatedSensor:
    """Load cell whose voltage is set by hand, with optional gaussian noise."""

    def __init__(
        self,
        voltage: float = 0.0,
        *,
        noise: float = 0.0,
        reference_voltage: float = defaults.REFERENCE_VOLTAGE,
        seed: Optional[int] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._voltage = float(voltage)
        self._noise = max(0.0, float(noise))
        self._reference_voltage = float(reference_voltage)
        self._random = random.Random(seed)
        self._fail = False
        self.reads = 0

    def set_voltage(self, voltage: float) -> None:
        with self._lock:
            self._voltage = float(voltage)

    def fail_next(self, fail: bool = True) -> None:
        with self._lock:
            self._fail = fail

    def read_voltage(self) -> float:
        with self._lock:
            self.reads += 1
            if self._fail:
                self._fail = False
                raise SensorError("simulated read failure")
            value = self._voltage
            if self._noise:
                value += self._random.gauss(0.0, self._noise)
        return clamp_voltage(value, self._reference_voltage)


class SimulatedButton:
    """Push button; ``press()`` holds the level high for a single poll."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._held = False
        self._pulses = 0

    def press(self) -> None:
        with self._lock:
            self._pulses += 1

    def hold(self, pressed: bool) -> None:
        with self._lock:
            self._held = bool(pressed)

    def read(self) -> bool:
        with self._lock:
            if self._held:
                return True
            if self._pulses:
                self._pulses -= 1
                return True
            return False


class MemoryOutput:
    """Digital output that records every level written to it."""

    def __init__(self) -> None:
        self.value = False
        self.history: Deque[bool] = deque(maxlen=HISTORY_LIMIT)

    def write(self, value: bool) -> None:
        self.value = bool(value)
        self.history.append(self.value)


class MemoryDisplay:
    """Two-row character buffer with a backlight tint."""

    def __init__(
        self,
        columns: int = defaults.DISPLAY_COLUMNS,
        rows: int = defaults.DISPLAY_ROWS,
        on_render: Optional[Callable[[Tuple[str, ...], Tint], None]] = None,
    ) -> None:
        self._columns = columns
        self._rows = [""] * rows
        self._cursor = (0, 0)
        self.tint: Tint = (0, 0, 0)
        self.frames: Deque[Tuple[str, ...]] = deque(maxlen=HISTORY_LIMIT)
        self._on_render = on_render

    def clear(self) -> None:
        self._rows = [""] * len(self._rows)
        self._cursor = (0, 0)

    def locate(self, column: int, row: int) -> None:
        row = min(max(int(row), 0), len(self._rows) - 1)
        self._cursor = (min(max(int(column), 0), self._columns - 1), row)

    def print(self, text: str) -> None:
        column, row = self._cursor
        line = self._rows[row].ljust(column)
        written = (line[:column] + text)[: self._columns]
        self._rows[row] = written + line[len(written):]
        self._cursor = (min(len(written), self._columns - 1), row)

    def flush(self) -> None:
        """Record the finished frame; unchanged frames are not rendered again."""

        snapshot = self.lines
        if not self.frames or self.frames[-1] != snapshot:
            self.frames.append(snapshot)
            if self._on_render is not None:
                self._on_render(snapshot, self.tint)

    def set_rgb(self, red: int, green: int, blue: int) -> None:
        self.tint = validate_tint(red, green, blue)

    @property
    def lines(self) -> Tuple[str, ...]:
        return tuple(row.rstrip() for row in self._rows)


class SimulatedBench:
    """Sensor, tare button, panel and raw outputs wired together."""

    def __init__(
        self,
        *,
        voltage: float = 0.0,
        noise: float = 0.0,
        columns: int = defaults.DISPLAY_COLUMNS,
        on_render: Optional[Callable[[Tuple[str, ...], Tint], None]] = None,
    ) -> None:
        self.sensor = SimulatedSensor(voltage, noise=noise)
        self.tare = SimulatedButton()
        self.status_pin = MemoryOutput()
        self.ready_pin = MemoryOutput()
        self.alarm_pin = MemoryOutput()
        self.display = MemoryDisplay(columns=columns, on_render=on_render)
        self.panel = ActuatorPanel(
            status_led=Indicator(self.status_pin, "status"),
            ready_led=Indicator(self.ready_pin, "ready"),
            alarm=Indicator(self.alarm_pin, "alarm"),
            display=self.display,
            columns=columns,
        )


__all__ = [
    "MemoryDisplay",
    "MemoryOutput",
    "SimulatedBench",
    "SimulatedButton",
    "SimulatedSensor",
]
