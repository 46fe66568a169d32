"""Command-line control of a bench supply."""

from __future__ import annotations

import argparse
import logging
import threading
from pathlib import Path
from typing import Callable, Optional, Sequence

from bench_psu.errors import PsError, Result, validate_current, validate_voltage
from bench_psu.instrumentation import PowerSupply, SimulatedSupply
from bench_psu.instrumentation.session import SerialFactory
from bench_psu.io import SettingsError, SupplySettings, load_supply_settings
from bench_psu.telemetry import TelemetryLogger, TelemetryRecorder, TelemetrySeries

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--port", help="Serial port of the supply (overrides settings).")
    parser.add_argument("--settings", help="Optional path to a settings YAML file.")
    parser.add_argument("--simulate", action="store_true", help="Talk to a simulated supply instead of hardware.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("status", help="Print output state, voltage and current.")
    sub.add_parser("on", help="Turn the output on.")
    sub.add_parser("off", help="Turn the output off.")
    sub.add_parser("toggle", help="Flip the output state.")

    set_voltage = sub.add_parser("set-voltage", help="Set the output voltage.")
    set_voltage.add_argument("volts", type=float)

    set_output_current = sub.add_parser("set-current", help="Set the output current.")
    set_output_current.add_argument("amps", type=float)

    set_current = sub.add_parser("set-max-current", help="Set the current limit.")
    set_current.add_argument("amps", type=float)

    monitor = sub.add_parser("monitor", help="Print current changes until interrupted.")
    monitor.add_argument("--interval", type=int, help="Sample interval in seconds.")
    monitor.add_argument("--duration", type=float, help="Stop after this many seconds.")
    monitor.add_argument("--log", type=Path, help="Append changes to this CSV file.")
    return parser


def _settings(args: argparse.Namespace) -> SupplySettings:
    try:
        return load_supply_settings(args.settings)
    except FileNotFoundError:
        if args.settings:
            raise
        return SupplySettings()


def _report(result: Result, label: str) -> int:
    if result.ok:
        if result.value is not None:
            print(f"{label}: {result.value}")
        return 0
    print(f"{label} failed: {result.error.name}")
    return 1


def _status(psu: PowerSupply) -> int:
    code = 0
    for label, query in (
        ("output", psu.is_on),
        ("voltage", psu.read_voltage),
        ("current", psu.read_current),
        ("max current", psu.read_max_current),
    ):
        code |= _report(query(), label)
    return code


def _monitor(psu: PowerSupply, args: argparse.Namespace, settings: SupplySettings,
             wait: Callable[[Optional[float]], bool]) -> int:
    interval = args.interval or settings.sample_interval_s
    telemetry_log = TelemetryLogger(args.log) if args.log else None
    if telemetry_log is not None:
        telemetry_log.open()
    voltage = psu.read_voltage()
    series = TelemetrySeries()
    recorder = TelemetryRecorder(
        series=series,
        telemetry_log=telemetry_log,
        voltage=voltage.value if voltage.ok else None,
    )

    def _on_change(value: float) -> None:
        recorder(value)
        print(f"current: {value:.6f}", flush=True)

    psu.start_monitoring(interval, on_current_changed=_on_change)
    try:
        wait(args.duration)
    except KeyboardInterrupt:
        pass
    finally:
        psu.stop_monitoring()
        if telemetry_log is not None:
            telemetry_log.close()

    summary = series.summary()
    if summary is None:
        print("no current changes observed")
    else:
        print(
            f"changes: {summary.samples} min: {summary.minimum:.6f} "
            f"max: {summary.maximum:.6f} last: {summary.last:.6f} over {summary.span_s:.1f}s"
        )
    return 0


def main(
    argv: Optional[Sequence[str]] = None,
    wait: Optional[Callable[[Optional[float]], bool]] = None,
    serial_factory: Optional[SerialFactory] = None,
) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = _settings(args)
    except (FileNotFoundError, SettingsError) as exc:
        raise SystemExit(str(exc)) from exc

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    factory = serial_factory
    if factory is None and args.simulate:
        factory = SimulatedSupply().as_factory()
    port = args.port or settings.port or ("sim://supply" if args.simulate else "")

    with PowerSupply(baudrate=settings.baudrate, timeout=settings.timeout_s, serial_factory=factory) as psu:
        opened = psu.open(port)
        if not opened.ok:
            print(f"Port {port!r} not open: {opened.error.name}")
            return 1
        if settings.max_current_a is not None:
            psu.write_max_current(settings.max_current_a)

        if args.command == "status":
            return _status(psu)
        if args.command == "on":
            return _report(psu.turn_on(), "turn on")
        if args.command == "off":
            return _report(psu.turn_off(), "turn off")
        if args.command == "toggle":
            return _report(psu.toggle(), "output")
        if args.command == "set-voltage":
            if validate_voltage(args.volts) is not PsError.SUCCESS:
                return _report(Result.failure(PsError.INVALID_VOLTAGE), "set voltage")
            return _report(psu.write_voltage(args.volts), "set voltage")
        if args.command == "set-current":
            if validate_current(args.amps) is not PsError.SUCCESS:
                return _report(Result.failure(PsError.INVALID_CURRENT), "set current")
            return _report(psu.write_current(args.amps), "set current")
        if args.command == "set-max-current":
            if validate_current(args.amps) is not PsError.SUCCESS:
                return _report(Result.failure(PsError.INVALID_CURRENT), "set max current")
            return _report(psu.write_max_current(args.amps), "set max current")
        if args.command == "monitor":
            return _monitor(psu, args, settings, wait or threading.Event().wait)
    return 1
