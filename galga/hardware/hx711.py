"""HX711 load-cell amplifier read over two GPIO lines."""
from __future__ import annotations

import time
from typing import Any

from galga.config import defaults
from galga.hardware.base import SensorReadTimeout, clamp_voltage
from galga.hardware.gpio import load_gpio
from galga.logging_utils import get_logger

LOGGER = get_logger("hx711")

FULL_SCALE_COUNTS = 1 << 24
HALF_SCALE_COUNTS = 1 << 23


def counts_to_voltage(value: int, reference_voltage: float = defaults.REFERENCE_VOLTAGE) -> float:
    """Map a signed 24-bit reading onto ``0..reference_voltage``."""

    fraction = (int(value) + HALF_SCALE_COUNTS) / float(FULL_SCALE_COUNTS)
    return clamp_voltage(fraction * reference_voltage, reference_voltage)


class HX711Sensor:
    """Bit-banged HX711 on channel A, gain 128."""

    def __init__(
        self,
        dt_pin: int,
        sck_pin: int,
        *,
        reference_voltage: float = defaults.REFERENCE_VOLTAGE,
        ready_timeout: float = 0.5,
    ) -> None:
        self._GPIO: Any = load_gpio()
        self._dt_pin = int(dt_pin)
        self._sck_pin = int(sck_pin)
        self._reference_voltage = float(reference_voltage)
        self._ready_timeout = float(ready_timeout)

        self._GPIO.setup(self._dt_pin, self._GPIO.IN, pull_up_down=self._GPIO.PUD_UP)
        self._GPIO.setup(self._sck_pin, self._GPIO.OUT)
        self._GPIO.output(self._sck_pin, False)

    def wait_ready(self) -> None:
        start = time.perf_counter()
        while time.perf_counter() - start < self._ready_timeout:
            if self._GPIO.input(self._dt_pin) == 0:
                return
            time.sleep(0.0005)
        raise SensorReadTimeout("HX711 ready timeout")

    def read_counts(self) -> int:
        self.wait_ready()
        value = 0
        for _ in range(24):
            self._GPIO.output(self._sck_pin, True)
            value = (value << 1) | self._GPIO.input(self._dt_pin)
            self._GPIO.output(self._sck_pin, False)
        # 25th pulse selects channel A / gain 128 for the next conversion
        self._GPIO.output(self._sck_pin, True)
        self._GPIO.output(self._sck_pin, False)

        if value & 0x800000:
            value -= FULL_SCALE_COUNTS
        return value

    def read_voltage(self) -> float:
        return counts_to_voltage(self.read_counts(), self._reference_voltage)

    def cleanup(self) -> None:
        try:
            self._GPIO.output(self._sck_pin, False)
            self._GPIO.cleanup((self._dt_pin, self._sck_pin))
        except Exception:  # pragma: no cover - best effort
            LOGGER.debug("HX711 GPIO cleanup failed", exc_info=True)


__all__ = ["HX711Sensor", "counts_to_voltage"]
