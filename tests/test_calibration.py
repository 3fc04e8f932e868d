import math

import pytest

from galga.core.calibration import (
    CalibrationData,
    CalibrationError,
    DegenerateMeasurementError,
    ZeroSensitivityError,
    averaged_voltage,
    calibrate,
    derive_slope,
    exceeds_limit,
    weight_from_voltage,
)


def test_averaged_voltage_resamples_every_iteration() -> None:
    samples = iter([0.48, 0.52, 0.49, 0.51])
    calls = []

    def read() -> float:
        value = next(samples)
        calls.append(value)
        return value

    assert averaged_voltage(read, 4) == pytest.approx(0.5)
    assert len(calls) == 4


def test_averaged_voltage_rejects_empty_sample_count() -> None:
    with pytest.raises(ValueError):
        averaged_voltage(lambda: 1.0, 0)


@pytest.mark.parametrize(
    "zero,reference,mass",
    [
        (0.5, 1.0, 100.0),
        (1.2, 0.7, 100.0),
        (0.0, 3.3, 250.0),
        (0.1234, 0.1235, 1.0),
    ],
)
def test_derive_slope_is_linear_two_point_fit(zero, reference, mass) -> None:
    slope = derive_slope(zero, reference, mass)
    assert slope == pytest.approx((reference - zero) / mass)
    assert weight_from_voltage(zero, zero, slope) == 0
    assert weight_from_voltage(reference, zero, slope) == pytest.approx(mass)


def test_scenario_a_values() -> None:
    slope = derive_slope(0.50, 1.00, 100)
    assert slope == pytest.approx(0.005)
    weight = weight_from_voltage(0.75, 0.50, slope)
    assert weight == pytest.approx(50.0)
    assert not exceeds_limit(weight, 120.0)


def test_equal_voltages_signal_zero_sensitivity() -> None:
    with pytest.raises(ZeroSensitivityError):
        derive_slope(0.8, 0.8, 100.0)
    assert issubclass(ZeroSensitivityError, CalibrationError)


@pytest.mark.parametrize("mass", [0.0, -100.0, math.nan])
def test_reference_mass_must_be_positive(mass) -> None:
    with pytest.raises(CalibrationError):
        derive_slope(0.5, 1.0, mass)


@pytest.mark.parametrize("slope", [0.0, math.nan, math.inf])
def test_weight_refuses_unusable_slope(slope) -> None:
    with pytest.raises(DegenerateMeasurementError):
        weight_from_voltage(1.0, 0.5, slope)


def test_exceeds_limit_is_strict_and_tolerates_round_off() -> None:
    slope = derive_slope(0.50, 1.00, 100)
    at_limit = weight_from_voltage(1.10, 0.50, slope)
    assert at_limit == pytest.approx(120.0)
    assert not exceeds_limit(at_limit, 120.0)
    assert not exceeds_limit(120.0, 120.0)
    assert exceeds_limit(120.01, 120.0)
    assert exceeds_limit(weight_from_voltage(1.25, 0.50, slope), 120.0)


def test_calibration_data_validity() -> None:
    assert not CalibrationData().is_valid
    data = calibrate(0.5, 1.0, 100.0)
    assert data.is_valid
    assert data.zero_voltage == 0.5
    assert data.reference_voltage == 1.0
    assert data.slope == pytest.approx(0.005)
