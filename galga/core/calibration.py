"""Two-point load-cell calibration arithmetic."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable

WEIGHT_EPSILON_G = 1e-6


class CalibrationError(Exception):
    """Base exception for calibration faults."""


class ZeroSensitivityError(CalibrationError):
    """Raised when the zero and reference voltages are identical."""


class DegenerateMeasurementError(CalibrationError):
    """Raised when a weight is requested without a usable slope."""


@dataclass(frozen=True)
class CalibrationData:
    """Captured calibration points and the derived slope (volts per gram)."""

    zero_voltage: float = 0.0
    reference_voltage: float = 0.0
    slope: float = 0.0

    @property
    def is_valid(self) -> bool:
        return self.slope != 0.0 and math.isfinite(self.slope)


def averaged_voltage(read_fn: Callable[[], float], sample_count: int) -> float:
    """Return the mean of ``sample_count`` fresh reads from ``read_fn``."""

    count = int(sample_count)
    if count < 1:
        raise ValueError("sample_count must be at least 1")
    total = 0.0
    for _ in range(count):
        total += float(read_fn())
    return total / count


def derive_slope(zero_voltage: float, reference_voltage: float, reference_mass_grams: float) -> float:
    """Linear fit through (0 g, zero_voltage) and (mass, reference_voltage)."""

    if not reference_mass_grams > 0:
        raise CalibrationError(f"reference mass must be positive, got {reference_mass_grams!r}")
    if reference_voltage == zero_voltage:
        raise ZeroSensitivityError(
            f"reference and zero voltages are both {zero_voltage:.6f} V; the load cell shows no sensitivity"
        )
    slope = (reference_voltage - zero_voltage) / reference_mass_grams
    if not math.isfinite(slope) or slope == 0.0:
        raise ZeroSensitivityError(f"unusable slope {slope!r}")
    return slope


def weight_from_voltage(voltage: float, zero_voltage: float, slope: float) -> float:
    """Convert a sensor voltage into grams using the calibrated slope."""

    if slope == 0.0 or not math.isfinite(slope):
        raise DegenerateMeasurementError("calibration slope is zero or undefined")
    return (voltage - zero_voltage) / slope


def exceeds_limit(weight: float, limit: float) -> bool:
    """True when ``weight`` is strictly above ``limit`` beyond float round-off."""

    return weight - limit > WEIGHT_EPSILON_G


def calibrate(zero_voltage: float, reference_voltage: float, reference_mass_grams: float) -> CalibrationData:
    slope = derive_slope(zero_voltage, reference_voltage, reference_mass_grams)
    return CalibrationData(zero_voltage=zero_voltage, reference_voltage=reference_voltage, slope=slope)


__all__ = [
    "CalibrationData",
    "CalibrationError",
    "DegenerateMeasurementError",
    "ZeroSensitivityError",
    "averaged_voltage",
    "calibrate",
    "derive_slope",
    "exceeds_limit",
    "weight_from_voltage",
    "WEIGHT_EPSILON_G",
]
