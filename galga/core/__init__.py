"""Controller core: calibration arithmetic, timers, reset flag and state machine."""

from .calibration import (
    CalibrationData,
    CalibrationError,
    DegenerateMeasurementError,
    ZeroSensitivityError,
    averaged_voltage,
    derive_slope,
    weight_from_voltage,
)
from .reset import ResetSignal
from .state_machine import ControlStateMachine, MachineSnapshot, SystemState
from .timing import AlarmTimer, BlinkTimer

__all__ = [
    "AlarmTimer",
    "BlinkTimer",
    "CalibrationData",
    "CalibrationError",
    "ControlStateMachine",
    "DegenerateMeasurementError",
    "MachineSnapshot",
    "ResetSignal",
    "SystemState",
    "ZeroSensitivityError",
    "averaged_voltage",
    "derive_slope",
    "weight_from_voltage",
]
