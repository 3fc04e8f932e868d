"""Interfaces between the controller and the board peripherals."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

Tint = Tuple[int, int, int]

WHITE: Tint = (0xFF, 0xFF, 0xFF)
ORANGE: Tint = (0xFF, 0xC3, 0x00)
PINK: Tint = (0xE3, 0x98, 0xC2)
RED: Tint = (0xC7, 0x00, 0x39)


class SensorError(Exception):
    """Raised when the load-cell front end cannot deliver a sample."""


class SensorReadTimeout(SensorError):
    """Raised when the converter does not signal data ready in time."""


class SensorPort(Protocol):
    def read_voltage(self) -> float:
        ...


class InputPin(Protocol):
    def read(self) -> bool:
        ...


class OutputPin(Protocol):
    def write(self, value: bool) -> None:
        ...


class TextDisplay(Protocol):
    def clear(self) -> None:
        ...

    def locate(self, column: int, row: int) -> None:
        ...

    def print(self, text: str) -> None:
        ...

    def set_rgb(self, red: int, green: int, blue: int) -> None:
        ...

    def flush(self) -> None:
        ...


def clamp_voltage(value: float, reference_voltage: float) -> float:
    return min(max(float(value), 0.0), float(reference_voltage))


def validate_tint(red: int, green: int, blue: int) -> Tint:
    channels = (int(red), int(green), int(blue))
    for channel in channels:
        if not 0 <= channel <= 0xFF:
            raise ValueError(f"tint channel out of range: {channel}")
    return channels  # type: ignore[return-value]


class Indicator:
    """Binary output that remembers the level it last drove."""

    def __init__(self, pin: OutputPin, name: str = "") -> None:
        self._pin = pin
        self._name = name
        self._on = False
        self._pin.write(False)

    def set(self, value: bool) -> None:
        self._on = bool(value)
        self._pin.write(self._on)

    def on(self) -> None:
        self.set(True)

    def off(self) -> None:
        self.set(False)

    def toggle(self) -> None:
        self.set(not self._on)

    @property
    def is_on(self) -> bool:
        return self._on

    @property
    def name(self) -> str:
        return self._name


@dataclass
class ActuatorPanel:
    """The indicators and the two-line display driven by the controller."""

    status_led: Indicator
    ready_led: Indicator
    alarm: Indicator
    display: TextDisplay
    columns: int = 16

    def show(self, first: str, second: str = "", tint: Optional[Tint] = None) -> None:
        if tint is not None:
            self.display.set_rgb(*validate_tint(*tint))
        self.display.clear()
        self.display.locate(0, 0)
        self.display.print(first[: self.columns])
        if second:
            self.display.locate(0, 1)
            self.display.print(second[: self.columns])
        self.display.flush()

    def indicators_off(self) -> None:
        self.status_led.off()
        self.ready_led.off()
        self.alarm.off()


__all__ = [
    "ActuatorPanel",
    "Indicator",
    "InputPin",
    "OutputPin",
    "SensorError",
    "SensorPort",
    "SensorReadTimeout",
    "TextDisplay",
    "Tint",
    "WHITE",
    "ORANGE",
    "PINK",
    "RED",
    "clamp_voltage",
    "validate_tint",
]
