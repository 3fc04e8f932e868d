"""``galga`` console entry point."""
from __future__ import annotations

import argparse
import logging
import sys
import threading
from typing import IO, Optional, Sequence, Tuple

from pydantic import ValidationError

from galga.core.reset import ResetSignal
from galga.core.state_machine import ControlStateMachine, MachineSnapshot
from galga.hardware.base import Tint
from galga.hardware.simulated import SimulatedBench
from galga.logging_utils import add_console_handler, get_logger
from galga.models.settings import Settings, load_settings

LOGGER = get_logger("cli")

SIMULATOR_HELP = "commands: t = tare/calibrate, r = reset edge, <volts> = set load cell, q = quit"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="galga", description="Load-cell overweight alarm controller")
    parser.add_argument("--simulate", action="store_true", help="run against the in-memory bench")
    parser.add_argument("--voltage", type=float, default=0.5, help="initial simulated load-cell voltage")
    parser.add_argument("--noise", type=float, default=0.0, help="simulated sensor noise (volts, 1 sigma)")
    parser.add_argument("--max-ticks", type=int, default=None, help="stop after this many loop iterations")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging threshold",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="also log to stderr")
    return parser


def _print_frame(lines: Tuple[str, ...], tint: Tint) -> None:
    rows = " | ".join(line.ljust(16) for line in lines)
    print(f"LCD #{tint[0]:02x}{tint[1]:02x}{tint[2]:02x} [{rows}]", flush=True)


def _log_snapshot(snapshot: MachineSnapshot) -> None:
    LOGGER.info(
        "state=%s weight=%.3f g slope=%.6f resets=%d",
        snapshot.state.value,
        snapshot.weight_g,
        snapshot.calibration.slope,
        snapshot.resets,
    )


def run_simulator_commands(
    stream: IO[str],
    bench: SimulatedBench,
    machine: ControlStateMachine,
    reset_signal: ResetSignal,
) -> None:
    """Apply bench commands read line by line from ``stream``."""

    for line in stream:
        command = line.strip().lower()
        if not command:
            continue
        if command == "t":
            bench.tare.press()
        elif command == "r":
            reset_signal.request()
        elif command == "q":
            machine.stop()
            return
        else:
            try:
                bench.sensor.set_voltage(float(command.replace(",", ".")))
            except ValueError:
                print(SIMULATOR_HELP, flush=True)


def _run_simulated(settings: Settings, args: argparse.Namespace) -> int:
    reset_signal = ResetSignal()
    bench = SimulatedBench(
        voltage=args.voltage,
        noise=args.noise,
        columns=settings.thresholds.display_columns,
        on_render=_print_frame,
    )
    machine = ControlStateMachine(
        bench.sensor,
        bench.tare,
        bench.panel,
        settings.thresholds,
        reset_signal=reset_signal,
    )
    machine.subscribe(_log_snapshot)

    print(SIMULATOR_HELP, flush=True)
    reader = threading.Thread(
        target=run_simulator_commands,
        args=(sys.stdin, bench, machine, reset_signal),
        name="galga-simulator-input",
        daemon=True,
    )
    reader.start()
    try:
        machine.run_forever(args.max_ticks)
    except KeyboardInterrupt:
        LOGGER.info("Interrupted")
    return 0


def _run_board(settings: Settings, args: argparse.Namespace) -> int:
    from galga.hardware.board import build_board

    reset_signal = ResetSignal()
    try:
        board = build_board(settings, reset_signal.request)
    except (ImportError, OSError) as exc:
        LOGGER.error("Hardware unavailable: %s", exc)
        print(f"galga: hardware unavailable: {exc} (try --simulate)", file=sys.stderr)
        return 1

    machine = ControlStateMachine(
        board.sensor,
        board.tare_button,
        board.panel,
        settings.thresholds,
        reset_signal=reset_signal,
    )
    machine.subscribe(_log_snapshot)
    try:
        machine.run_forever(args.max_ticks)
    except KeyboardInterrupt:
        LOGGER.info("Interrupted")
    finally:
        board.panel.indicators_off()
        board.close()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = getattr(logging, args.log_level)
    get_logger().setLevel(level)
    if args.verbose:
        add_console_handler(level)

    try:
        settings = load_settings()
    except ValidationError as exc:
        print(f"galga: invalid settings:\n{exc}", file=sys.stderr)
        return 2

    if args.simulate or settings.sensor_backend == "simulated":
        return _run_simulated(settings, args)
    return _run_board(settings, args)


__all__ = ["build_parser", "main", "run_simulator_commands"]
