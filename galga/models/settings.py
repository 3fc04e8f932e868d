from __future__ import annotations

import os
from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from galga.config import defaults

SensorBackend = Literal["ads1115", "hx711", "simulated"]

ENV_PREFIX = "GALGA_"


def _normalize_float(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return None
        trimmed = trimmed.replace(",", ".")
        try:
            return float(trimmed)
        except ValueError:
            return None
    return None


def _normalize_int(value: Any) -> Optional[int]:
    text = value.strip() if isinstance(value, str) else value
    if isinstance(text, str) and text.lower().startswith("0x"):
        try:
            return int(text, 16)
        except ValueError:
            return None
    float_candidate = _normalize_float(text)
    if float_candidate is None:
        return None
    try:
        return int(round(float_candidate))
    except (TypeError, ValueError, OverflowError):
        return None


def _normalize_choice(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower()
    return normalized or None


class Thresholds(BaseModel):
    """Fixed operating limits, set once at startup."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    weight_limit_g: float = Field(default=defaults.WEIGHT_LIMIT_G, gt=0)
    alarm_timeout_s: float = Field(default=defaults.ALARM_TIMEOUT_S, gt=0)
    sample_count: int = Field(default=defaults.SAMPLE_COUNT, ge=1, le=1000)
    reference_mass_g: float = Field(default=defaults.REFERENCE_MASS_G, gt=0)
    display_pacing_ms: int = Field(default=defaults.DISPLAY_PACING_MS, ge=0, le=10_000)
    blink_half_period_ms: int = Field(default=defaults.BLINK_HALF_PERIOD_MS, gt=0, le=10_000)
    reference_voltage: float = Field(default=defaults.REFERENCE_VOLTAGE, gt=0)
    display_columns: int = Field(default=defaults.DISPLAY_COLUMNS, ge=8, le=40)

    @property
    def pacing_seconds(self) -> float:
        return self.display_pacing_ms / 1000.0

    @property
    def blink_half_period_s(self) -> float:
        return self.blink_half_period_ms / 1000.0


class HardwarePins(BaseModel):
    """BCM pin numbers and I2C addresses of the board peripherals."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    reset_pin: int = Field(default=defaults.RESET_PIN, ge=0, le=27)
    tare_pin: int = Field(default=defaults.TARE_PIN, ge=0, le=27)
    status_led_pin: int = Field(default=defaults.STATUS_LED_PIN, ge=0, le=27)
    ready_led_pin: int = Field(default=defaults.READY_LED_PIN, ge=0, le=27)
    alarm_pin: int = Field(default=defaults.ALARM_PIN, ge=0, le=27)
    hx711_dt_pin: int = Field(default=defaults.HX711_DT_PIN, ge=0, le=27)
    hx711_sck_pin: int = Field(default=defaults.HX711_SCK_PIN, ge=0, le=27)
    reset_bounce_ms: int = Field(default=defaults.RESET_BOUNCE_MS, ge=0, le=5_000)
    i2c_bus: int = Field(default=defaults.I2C_BUS, ge=0)
    ads1115_address: int = Field(default=defaults.ADS1115_ADDRESS, ge=0x03, le=0x77)
    ads1115_channel: int = Field(default=defaults.ADS1115_CHANNEL, ge=0, le=3)
    lcd_address: int = Field(default=defaults.LCD_ADDRESS, ge=0x03, le=0x77)
    rgb_address: int = Field(default=defaults.RGB_ADDRESS, ge=0x03, le=0x77)


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    thresholds: Thresholds = Field(default_factory=Thresholds)
    pins: HardwarePins = Field(default_factory=HardwarePins)
    sensor_backend: SensorBackend = defaults.SENSOR_BACKEND


_FLOAT_THRESHOLDS = ("weight_limit_g", "alarm_timeout_s", "reference_mass_g", "reference_voltage")
_INT_THRESHOLDS = ("sample_count", "display_pacing_ms", "blink_half_period_ms", "display_columns")


def _collect(raw: Mapping[str, Any], names, normalize) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for name in names:
        candidate = normalize(raw.get(ENV_PREFIX + name.upper()))
        if candidate is not None:
            values[name] = candidate
    return values


def load_settings(environ: Optional[Mapping[str, Any]] = None) -> Settings:
    """Build the startup settings from ``GALGA_*`` variables.

    Unparseable values fall back to the factory default; parseable values
    outside their range raise ``pydantic.ValidationError``.
    """

    raw = os.environ if environ is None else environ

    threshold_values = _collect(raw, _FLOAT_THRESHOLDS, _normalize_float)
    threshold_values.update(_collect(raw, _INT_THRESHOLDS, _normalize_int))
    pin_values = _collect(raw, HardwarePins.model_fields.keys(), _normalize_int)

    payload: Dict[str, Any] = {
        "thresholds": Thresholds(**threshold_values),
        "pins": HardwarePins(**pin_values),
    }
    backend = _normalize_choice(raw.get(ENV_PREFIX + "SENSOR_BACKEND"))
    if backend is not None:
        payload["sensor_backend"] = backend
    return Settings(**payload)


__all__ = [
    "Thresholds",
    "HardwarePins",
    "Settings",
    "SensorBackend",
    "load_settings",
]
