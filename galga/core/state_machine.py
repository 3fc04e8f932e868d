"""Control loop of the weighing device.

The machine owns the current :class:`SystemState`, the captured
calibration, the live weight and the alarm stopwatch. All of them are
mutated from the loop thread only; the GPIO edge callback talks to the
loop exclusively through :class:`~galga.core.reset.ResetSignal`.

Transitions::

    IDLE --tare--> CALIBRATING --tare (slope ok)--> MEASURING
    MEASURING --weight > limit--> ALARMING --timeout--> IDLE
    MEASURING --no slope--> IDLE
    any --reset edge--> IDLE
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional

from galga.core.calibration import (
    CalibrationData,
    CalibrationError,
    DegenerateMeasurementError,
    averaged_voltage,
    calibrate,
    exceeds_limit,
    weight_from_voltage,
)
from galga.core.reset import ResetSignal
from galga.core.timing import AlarmTimer, BlinkTimer, Clock
from galga.hardware.base import ORANGE, PINK, RED, WHITE, ActuatorPanel, InputPin, SensorError, SensorPort
from galga.logging_utils import get_logger
from galga.models.settings import Thresholds

LOGGER = get_logger("control")


class SystemState(Enum):
    IDLE = "idle"
    CALIBRATING = "calibrating"
    MEASURING = "measuring"
    ALARMING = "alarming"


TRANSITIONS: Dict[SystemState, FrozenSet[SystemState]] = {
    SystemState.IDLE: frozenset({SystemState.CALIBRATING}),
    SystemState.CALIBRATING: frozenset({SystemState.MEASURING}),
    SystemState.MEASURING: frozenset({SystemState.ALARMING, SystemState.IDLE}),
    SystemState.ALARMING: frozenset({SystemState.IDLE}),
}


@dataclass(frozen=True)
class MachineSnapshot:
    """Read-only view of the controller, handed to listeners."""

    state: SystemState
    calibration: CalibrationData
    weight_g: float
    alarm_elapsed_s: float
    zero_captured: bool
    resets: int


class ControlStateMachine:
    """Finite-state controller driven by repeated calls to :meth:`tick`."""

    def __init__(
        self,
        sensor: SensorPort,
        tare_button: InputPin,
        panel: ActuatorPanel,
        thresholds: Optional[Thresholds] = None,
        *,
        reset_signal: Optional[ResetSignal] = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._sensor = sensor
        self._tare_button = tare_button
        self._panel = panel
        self._thresholds = thresholds or Thresholds()
        self._reset_signal = reset_signal or ResetSignal()
        self._alarm_timer = AlarmTimer(clock)
        self._blink = BlinkTimer(self._thresholds.blink_half_period_s, clock)

        self._state = SystemState.IDLE
        self._calibration = CalibrationData()
        self._weight = 0.0
        self._zero_captured = False
        self._last_tare_level = False
        # a fault message is covering the current state's prompt
        self._prompt_stale = False
        self._tare_edge = False
        self._entry_pending = True
        self._resets = 0

        self._handlers: Dict[SystemState, Callable[[], Optional[SystemState]]] = {
            SystemState.IDLE: self._handle_idle,
            SystemState.CALIBRATING: self._handle_calibrating,
            SystemState.MEASURING: self._handle_measuring,
            SystemState.ALARMING: self._handle_alarming,
        }
        self._entries: Dict[SystemState, Callable[[], None]] = {
            SystemState.IDLE: self._enter_idle,
            SystemState.CALIBRATING: self._enter_calibrating,
            SystemState.MEASURING: self._enter_measuring,
            SystemState.ALARMING: self._enter_alarming,
        }

        self._lock = threading.RLock()
        self._listeners: List[Callable[[MachineSnapshot], None]] = []
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Properties
    @property
    def state(self) -> SystemState:
        return self._state

    @property
    def calibration(self) -> CalibrationData:
        return self._calibration

    @property
    def weight(self) -> float:
        return self._weight

    @property
    def alarm_timer(self) -> AlarmTimer:
        return self._alarm_timer

    @property
    def reset_signal(self) -> ResetSignal:
        return self._reset_signal

    @property
    def thresholds(self) -> Thresholds:
        return self._thresholds

    # ------------------------------------------------------------------
    # Listeners
    def subscribe(self, callback: Callable[[MachineSnapshot], None]) -> Callable[[], None]:
        """Register a callback notified after every transition and reset."""

        with self._lock:
            self._listeners.append(callback)
            snapshot = self._snapshot_locked()

        callback(snapshot)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def snapshot(self) -> MachineSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> MachineSnapshot:
        elapsed = self._alarm_timer.elapsed() if self._state is SystemState.ALARMING else 0.0
        return MachineSnapshot(
            state=self._state,
            calibration=self._calibration,
            weight_g=self._weight,
            alarm_elapsed_s=elapsed,
            zero_captured=self._zero_captured,
            resets=self._resets,
        )

    def _notify(self, snapshot: MachineSnapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                LOGGER.warning("State listener %r failed", listener, exc_info=True)

    # ------------------------------------------------------------------
    # Loop
    def tick(self) -> SystemState:
        """Run one handler for the current state and apply its transition."""

        with self._lock:
            previous = self._state
            if self._reset_signal.consume():
                self._perform_reset()
                snapshot: Optional[MachineSnapshot] = self._snapshot_locked()
            else:
                self._tare_edge = self._tare_pressed()
                if self._entry_pending:
                    self._entry_pending = False
                    self._entries[self._state]()
                try:
                    next_state = self._handlers[self._state]()
                except SensorError as exc:
                    LOGGER.warning("Sensor read failed in %s: %s", self._state.value, exc)
                    self._show_fault("Sensor error", "check load cell")
                    next_state = None
                if next_state is not None and next_state is not self._state:
                    self._transition(next_state)
                snapshot = self._snapshot_locked() if self._state is not previous else None
            current = self._state

        if snapshot is not None:
            self._notify(snapshot)
        return current

    def request_reset(self) -> bool:
        return self._reset_signal.request()

    def run_forever(self, max_ticks: Optional[int] = None) -> int:
        """Tick until :meth:`stop` is called; returns the number of ticks run."""

        pacing = self._thresholds.pacing_seconds
        ticks = 0
        LOGGER.info(
            "Control loop starting (limit=%.1f g, timeout=%.1f s, samples=%d, pacing=%d ms)",
            self._thresholds.weight_limit_g,
            self._thresholds.alarm_timeout_s,
            self._thresholds.sample_count,
            self._thresholds.display_pacing_ms,
        )
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                LOGGER.exception("Unexpected error in %s; forcing reset", self._state.value)
                self._reset_signal.request()
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            self._stop_event.wait(pacing)
        LOGGER.info("Control loop stopped after %d ticks", ticks)
        return ticks

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            self._stop_event.clear()
            self._thread = threading.Thread(target=self.run_forever, name="galga-control", daemon=True)
            self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2)

    # ------------------------------------------------------------------
    # Transitions
    def _transition(self, target: SystemState) -> None:
        allowed = TRANSITIONS[self._state]
        if target not in allowed:
            raise RuntimeError(f"illegal transition {self._state.value} -> {target.value}")
        LOGGER.info("State %s -> %s", self._state.value, target.value)
        self._state = target
        self._entries[target]()

    def _perform_reset(self) -> None:
        LOGGER.warning("Resetting from %s", self._state.value)
        self._panel.show("Resetting...", tint=WHITE)
        self._panel.indicators_off()
        self._calibration = CalibrationData()
        self._weight = 0.0
        self._alarm_timer.clear()
        self._blink.reset()
        self._zero_captured = False
        self._prompt_stale = False
        self._state = SystemState.IDLE
        self._entry_pending = True
        self._resets += 1

    def _tare_pressed(self) -> bool:
        level = bool(self._tare_button.read())
        pressed = level and not self._last_tare_level
        self._last_tare_level = level
        return pressed

    def _average_voltage(self) -> float:
        return averaged_voltage(self._sensor.read_voltage, self._thresholds.sample_count)

    def _show_fault(self, first: str, second: str) -> None:
        self._panel.show(first, second, RED)
        self._prompt_stale = True

    # ------------------------------------------------------------------
    # IDLE
    def _enter_idle(self) -> None:
        self._panel.status_led.on()
        self._panel.ready_led.off()
        self._panel.alarm.off()
        self._panel.show("Remove weight &", "press calibrate", WHITE)
        self._prompt_stale = False

    def _handle_idle(self) -> Optional[SystemState]:
        if self._tare_edge:
            return SystemState.CALIBRATING
        return None

    # ------------------------------------------------------------------
    # CALIBRATING
    def _enter_calibrating(self) -> None:
        self._zero_captured = False
        self._blink.reset()
        self._panel.ready_led.off()
        self._panel.alarm.off()
        # the scale must still be empty here: sample before asking for the mass
        self._capture_zero()

    def _capture_zero(self) -> None:
        try:
            zero = self._average_voltage()
        except SensorError as exc:
            LOGGER.warning("Zero capture failed: %s", exc)
            self._show_fault("Sensor error", "check load cell")
            return
        self._calibration = CalibrationData(zero_voltage=zero)
        self._zero_captured = True
        LOGGER.info("Zero point captured at %.4f V", zero)
        self._show_calibrating_prompt()

    def _show_calibrating_prompt(self) -> None:
        self._panel.show(f"Place {self._thresholds.reference_mass_g:g} g", "press calibrate", ORANGE)
        self._prompt_stale = False

    def _handle_calibrating(self) -> Optional[SystemState]:
        if self._blink.due():
            self._panel.status_led.toggle()

        if not self._zero_captured:
            self._capture_zero()
            return None

        if self._prompt_stale:
            self._show_calibrating_prompt()

        if not self._tare_edge:
            return None

        zero = self._calibration.zero_voltage
        reference = self._average_voltage()
        try:
            calibration = calibrate(zero, reference, self._thresholds.reference_mass_g)
        except CalibrationError as exc:
            LOGGER.warning("Calibration rejected: %s", exc)
            self._calibration = CalibrationData(zero_voltage=zero, reference_voltage=reference)
            self._show_fault("Calib. failed", "check mass")
            return None

        self._calibration = calibration
        LOGGER.info(
            "Calibration done: zero=%.4f V, reference=%.4f V, slope=%.6f V/g",
            calibration.zero_voltage,
            calibration.reference_voltage,
            calibration.slope,
        )
        self._panel.show("Calibrated", "measuring...", PINK)
        return SystemState.MEASURING

    # ------------------------------------------------------------------
    # MEASURING
    def _enter_measuring(self) -> None:
        self._panel.status_led.off()
        self._panel.alarm.off()
        self._panel.ready_led.on()

    def _handle_measuring(self) -> Optional[SystemState]:
        try:
            if not self._calibration.is_valid:
                raise DegenerateMeasurementError(f"slope {self._calibration.slope!r} is unusable")
            weight = weight_from_voltage(
                self._sensor.read_voltage(),
                self._calibration.zero_voltage,
                self._calibration.slope,
            )
        except DegenerateMeasurementError as exc:
            LOGGER.error("Measurement aborted: %s", exc)
            self._weight = 0.0
            return SystemState.IDLE

        self._weight = weight
        self._panel.show("Weight:", f"{weight:.3f} g", WHITE)
        if exceeds_limit(weight, self._thresholds.weight_limit_g):
            return SystemState.ALARMING
        return None

    # ------------------------------------------------------------------
    # ALARMING
    def _enter_alarming(self) -> None:
        self._alarm_timer.reset()
        self._blink.reset()
        self._panel.ready_led.off()
        LOGGER.warning("Overweight: %.3f g > %.1f g", self._weight, self._thresholds.weight_limit_g)
        self._panel.show("OVERWEIGHT", f"Max {self._thresholds.weight_limit_g:g} g", RED)

    def _handle_alarming(self) -> Optional[SystemState]:
        if self._blink.due():
            self._panel.status_led.toggle()
            self._panel.alarm.toggle()

        elapsed = self._alarm_timer.elapsed()
        if elapsed > self._thresholds.alarm_timeout_s:
            self._alarm_timer.clear()
            self._panel.alarm.off()
            self._panel.status_led.off()
            LOGGER.info("Alarm cleared after %.2f s", elapsed)
            return SystemState.IDLE
        return None


__all__ = ["ControlStateMachine", "MachineSnapshot", "SystemState", "TRANSITIONS"]
