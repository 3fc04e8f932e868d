"""RPi.GPIO backed digital inputs, outputs and edge callbacks."""
from __future__ import annotations

from typing import Any, Callable, Iterable, Optional

from galga.logging_utils import get_logger

LOGGER = get_logger("gpio")

_GPIO: Any = None


def load_gpio() -> Any:
    """Import and initialise RPi.GPIO in BCM numbering."""

    global _GPIO
    if _GPIO is not None:
        return _GPIO
    try:
        import RPi.GPIO as GPIO  # type: ignore
    except ImportError as exc:  # pragma: no cover - hardware specific
        raise ImportError("RPi.GPIO module not available") from exc
    except RuntimeError as exc:  # pragma: no cover - raised off-board
        raise ImportError(f"RPi.GPIO cannot run here: {exc}") from exc

    GPIO.setwarnings(False)
    GPIO.setmode(GPIO.BCM)
    _GPIO = GPIO
    return GPIO


class GPIOOutput:
    """Push-pull output, driven low at startup."""

    def __init__(self, pin: int, *, active_high: bool = True) -> None:
        self._GPIO = load_gpio()
        self._pin = int(pin)
        self._active_high = active_high
        self._GPIO.setup(self._pin, self._GPIO.OUT, initial=self._level(False))

    def _level(self, value: bool) -> Any:
        return self._GPIO.HIGH if bool(value) == self._active_high else self._GPIO.LOW

    def write(self, value: bool) -> None:
        self._GPIO.output(self._pin, self._level(value))

    @property
    def pin(self) -> int:
        return self._pin


class GPIOInput:
    """Level-polled input; pressed reads as True."""

    def __init__(self, pin: int, *, active_high: bool = True) -> None:
        self._GPIO = load_gpio()
        self._pin = int(pin)
        self._active_high = active_high
        pull = self._GPIO.PUD_DOWN if active_high else self._GPIO.PUD_UP
        self._GPIO.setup(self._pin, self._GPIO.IN, pull_up_down=pull)

    def read(self) -> bool:
        level = bool(self._GPIO.input(self._pin))
        return level if self._active_high else not level

    @property
    def pin(self) -> int:
        return self._pin


class RisingEdgeWatch:
    """Calls ``callback`` from the RPi.GPIO event thread on each rising edge."""

    def __init__(self, pin: int, callback: Callable[[], Any], *, bounce_ms: int = 200) -> None:
        self._GPIO = load_gpio()
        self._pin = int(pin)
        self._callback = callback
        self._GPIO.setup(self._pin, self._GPIO.IN, pull_up_down=self._GPIO.PUD_DOWN)
        kwargs = {"callback": self._on_edge}
        if bounce_ms > 0:
            kwargs["bouncetime"] = int(bounce_ms)
        self._GPIO.add_event_detect(self._pin, self._GPIO.RISING, **kwargs)
        LOGGER.info("Watching rising edges on GPIO %d (bounce %d ms)", self._pin, bounce_ms)

    def _on_edge(self, channel: int) -> None:
        self._callback()

    def close(self) -> None:
        try:
            self._GPIO.remove_event_detect(self._pin)
        except Exception:  # pragma: no cover - best effort
            LOGGER.debug("remove_event_detect failed on GPIO %d", self._pin, exc_info=True)


def cleanup(pins: Optional[Iterable[int]] = None) -> None:
    if _GPIO is None:
        return
    try:
        if pins is None:
            _GPIO.cleanup()
        else:
            _GPIO.cleanup(tuple(pins))
    except Exception:  # pragma: no cover - best effort
        LOGGER.debug("GPIO cleanup failed", exc_info=True)


__all__ = ["GPIOInput", "GPIOOutput", "RisingEdgeWatch", "cleanup", "load_gpio"]
