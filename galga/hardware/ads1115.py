"""ADS1115 single-ended voltage reads over I2C."""
from __future__ import annotations

import time
from typing import Any, Optional

from smbus2 import SMBus

from galga.config import defaults
from galga.hardware.base import SensorError, clamp_voltage
from galga.logging_utils import get_logger

LOGGER = get_logger("ads1115")

REG_CONVERSION = 0x00
REG_CONFIG = 0x01
FSR_VOLTS = 4.096


def build_config(channel: int) -> int:
    """Config word for a single-shot conversion of ``channel`` against GND."""

    if channel not in (0, 1, 2, 3):
        raise ValueError(f"ADS1115 channel must be 0-3, got {channel}")
    mux = 0x04 + channel
    return (
        (1 << 15)  # OS: start single conversion
        | (mux << 12)  # MUX: AINx vs GND
        | (0x01 << 9)  # PGA +/-4.096 V
        | (0x01 << 8)  # MODE single-shot
        | (0x04 << 5)  # DR 128 SPS
        | 0x03  # comparator disabled
    )


def raw_to_volts(raw: int) -> float:
    if raw & 0x8000:
        raw -= 1 << 16
    return raw * (FSR_VOLTS / 32768.0)


class ADS1115Sensor:
    """Load-cell amplifier output sampled on one ADS1115 input."""

    def __init__(
        self,
        *,
        bus_id: int = defaults.I2C_BUS,
        address: int = defaults.ADS1115_ADDRESS,
        channel: int = defaults.ADS1115_CHANNEL,
        reference_voltage: float = defaults.REFERENCE_VOLTAGE,
        retries: int = 1,
        conversion_delay: float = 0.01,
        bus: Optional[Any] = None,
    ) -> None:
        self._address = int(address)
        self._config = build_config(int(channel))
        self._channel = int(channel)
        self._reference_voltage = float(reference_voltage)
        self._retries = max(0, int(retries))
        self._conversion_delay = max(0.0, float(conversion_delay))
        self._bus = bus if bus is not None else SMBus(int(bus_id))

    def read_voltage(self) -> float:
        attempts = self._retries + 1
        last_error: Optional[Exception] = None
        for attempt in range(attempts):
            try:
                self._bus.write_i2c_block_data(
                    self._address, REG_CONFIG, [(self._config >> 8) & 0xFF, self._config & 0xFF]
                )
                if self._conversion_delay:
                    time.sleep(self._conversion_delay)
                data = self._bus.read_i2c_block_data(self._address, REG_CONVERSION, 2)
            except OSError as exc:
                last_error = exc
                if attempt < attempts - 1:
                    time.sleep(0.005)
                continue
            volts = raw_to_volts((data[0] << 8) | data[1])
            return clamp_voltage(volts, self._reference_voltage)

        LOGGER.warning("ADS1115 read failed on channel %d: %s", self._channel, last_error)
        raise SensorError(f"ADS1115 read failed: {last_error}") from last_error

    def close(self) -> None:
        try:
            self._bus.close()
        except Exception as exc:  # pragma: no cover - best effort
            LOGGER.warning("Failed to close ADS1115 bus: %s", exc)


__all__ = ["ADS1115Sensor", "build_config", "raw_to_volts"]
