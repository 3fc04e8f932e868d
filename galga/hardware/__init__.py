"""Peripheral interfaces and their drivers."""

from .base import (
    ActuatorPanel,
    Indicator,
    InputPin,
    OutputPin,
    SensorError,
    SensorPort,
    SensorReadTimeout,
    TextDisplay,
)

__all__ = [
    "ActuatorPanel",
    "Indicator",
    "InputPin",
    "OutputPin",
    "SensorError",
    "SensorPort",
    "SensorReadTimeout",
    "TextDisplay",
]
