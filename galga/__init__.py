"""Load-cell overweight alarm controller."""

from .core import CalibrationData, ControlStateMachine, ResetSignal, SystemState
from .models.settings import Settings, Thresholds, load_settings

__version__ = "1.0.0"

__all__ = [
    "CalibrationData",
    "ControlStateMachine",
    "ResetSignal",
    "Settings",
    "SystemState",
    "Thresholds",
    "load_settings",
    "__version__",
]
