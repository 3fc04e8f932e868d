"""Wires the physical peripherals described by :class:`Settings`."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List

from galga.hardware.base import ActuatorPanel, Indicator, InputPin, SensorPort
from galga.logging_utils import get_logger
from galga.models.settings import Settings

LOGGER = get_logger("board")


@dataclass
class Board:
    sensor: SensorPort
    tare_button: InputPin
    panel: ActuatorPanel
    closers: List[Callable[[], Any]] = field(default_factory=list)

    def close(self) -> None:
        _close_all(self.closers)


def _close_all(closers: List[Callable[[], Any]]) -> None:
    for closer in reversed(closers):
        try:
            closer()
        except Exception:
            LOGGER.warning("Hardware cleanup step failed", exc_info=True)
    closers.clear()


def _build_sensor(settings: Settings, closers: List[Callable[[], Any]]) -> SensorPort:
    pins = settings.pins
    vref = settings.thresholds.reference_voltage
    if settings.sensor_backend == "hx711":
        from galga.hardware.hx711 import HX711Sensor

        hx711 = HX711Sensor(pins.hx711_dt_pin, pins.hx711_sck_pin, reference_voltage=vref)
        closers.append(hx711.cleanup)
        return hx711
    if settings.sensor_backend == "ads1115":
        from galga.hardware.ads1115 import ADS1115Sensor

        ads = ADS1115Sensor(
            bus_id=pins.i2c_bus,
            address=pins.ads1115_address,
            channel=pins.ads1115_channel,
            reference_voltage=vref,
        )
        closers.append(ads.close)
        return ads
    raise ValueError(f"sensor backend {settings.sensor_backend!r} has no physical driver")


def build_board(settings: Settings, on_reset_edge: Callable[[], Any]) -> Board:
    """Open GPIO, I2C and the load-cell front end.

    ``on_reset_edge`` is invoked from the RPi.GPIO callback thread; it must
    only raise the reset flag.
    """

    from galga.hardware import gpio
    from galga.hardware.lcd import GroveRGBLcd

    pins = settings.pins
    closers: List[Callable[[], Any]] = []
    try:
        closers.append(gpio.cleanup)
        tare = gpio.GPIOInput(pins.tare_pin)
        sensor = _build_sensor(settings, closers)
        display = GroveRGBLcd(
            bus_id=pins.i2c_bus,
            lcd_address=pins.lcd_address,
            rgb_address=pins.rgb_address,
            columns=settings.thresholds.display_columns,
        )
        closers.append(display.close)
        panel = ActuatorPanel(
            status_led=Indicator(gpio.GPIOOutput(pins.status_led_pin), "status"),
            ready_led=Indicator(gpio.GPIOOutput(pins.ready_led_pin), "ready"),
            alarm=Indicator(gpio.GPIOOutput(pins.alarm_pin), "alarm"),
            display=display,
            columns=settings.thresholds.display_columns,
        )
        watch = gpio.RisingEdgeWatch(pins.reset_pin, on_reset_edge, bounce_ms=pins.reset_bounce_ms)
        closers.append(watch.close)
    except Exception:
        _close_all(closers)
        raise

    LOGGER.info(
        "Board ready (sensor=%s, tare=GPIO %d, reset=GPIO %d)",
        settings.sensor_backend,
        pins.tare_pin,
        pins.reset_pin,
    )
    return Board(sensor=sensor, tare_button=tare, panel=panel, closers=closers)


__all__ = ["Board", "build_board"]
