import os
import sys
import tempfile
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("GALGA_LOG_DIR", tempfile.mkdtemp(prefix="galga-logs-"))

from galga.core.reset import ResetSignal  # noqa: E402
from galga.core.state_machine import ControlStateMachine  # noqa: E402
from galga.hardware.simulated import SimulatedBench  # noqa: E402
from galga.models.settings import Thresholds  # noqa: E402


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def thresholds() -> Thresholds:
    return Thresholds(sample_count=4, display_pacing_ms=0)


@pytest.fixture
def bench() -> SimulatedBench:
    return SimulatedBench(voltage=0.5)


@pytest.fixture
def machine(bench, thresholds, clock) -> ControlStateMachine:
    return ControlStateMachine(
        bench.sensor,
        bench.tare,
        bench.panel,
        thresholds,
        reset_signal=ResetSignal(),
        clock=clock,
    )


def calibrate(machine: ControlStateMachine, bench: SimulatedBench, zero: float = 0.5, reference: float = 1.0) -> None:
    """Drive the two-press calibration: idle, press, zero pass, press with the reference mass."""

    bench.sensor.set_voltage(zero)
    machine.tick()
    bench.tare.press()
    machine.tick()
    machine.tick()
    bench.sensor.set_voltage(reference)
    bench.tare.press()
    machine.tick()


@pytest.fixture
def run_calibration(machine, bench):
    def _run(zero: float = 0.5, reference: float = 1.0) -> None:
        calibrate(machine, bench, zero, reference)

    return _run
