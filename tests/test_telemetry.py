from pathlib import Path

import pytest

from bench_psu.telemetry import (
    ChangeNotifier,
    TelemetryLogger,
    TelemetryRecord,
    TelemetryRecorder,
    TelemetrySeries,
)


def test_series_keeps_newest_records():
    series = TelemetrySeries(max_points=2)
    for ts, amps in [(1.0, 0.1), (2.0, 0.2), (3.0, 0.3)]:
        series.append(TelemetryRecord(timestamp=ts, voltage=5.0, current=amps))

    assert [rec.timestamp for rec in series] == [2.0, 3.0]
    assert series.latest().current == 0.3


def test_summary_ignores_records_without_current():
    series = TelemetrySeries()
    assert series.summary() is None

    series.append(TelemetryRecord(timestamp=10.0, current=0.4))
    series.append(TelemetryRecord(timestamp=11.0, voltage=5.0))
    series.append(TelemetryRecord(timestamp=12.5, current=0.1))
    series.append(TelemetryRecord(timestamp=14.0, current=0.25))

    summary = series.summary()
    assert summary.samples == 3
    assert (summary.minimum, summary.maximum, summary.last) == (0.1, 0.4, 0.25)
    assert summary.span_s == 4.0


def test_series_rejects_empty_window():
    with pytest.raises(ValueError):
        TelemetrySeries(max_points=0)


def test_telemetry_logger_leaves_missing_values_blank(tmp_path: Path):
    log_path = tmp_path / "nested" / "log.csv"
    with TelemetryLogger(log_path) as telemetry_log:
        telemetry_log.log(TelemetryRecord(timestamp=1.5, voltage=12.0))
        telemetry_log.log(TelemetryRecord(timestamp=2.0, current=0.5))

    rows = log_path.read_text().strip().splitlines()
    assert rows == [
        "timestamp,voltage,current",
        "1.500,12.000000,",
        "2.000,,0.500000",
    ]


def test_telemetry_logger_appends_without_second_header(tmp_path: Path):
    log_path = tmp_path / "log.csv"
    with TelemetryLogger(log_path) as telemetry_log:
        telemetry_log.log(TelemetryRecord(timestamp=1.0, current=0.1))
    with TelemetryLogger(log_path) as telemetry_log:
        telemetry_log.log_many([TelemetryRecord(timestamp=2.0, current=0.2)])

    rows = log_path.read_text().strip().splitlines()
    assert rows.count("timestamp,voltage,current") == 1
    assert len(rows) == 3


def test_recorder_stamps_notifications(tmp_path: Path):
    ticks = iter([10.0, 11.0])
    series = TelemetrySeries()
    log_path = tmp_path / "currents.csv"
    with TelemetryLogger(log_path) as telemetry_log:
        recorder = TelemetryRecorder(series=series, telemetry_log=telemetry_log, voltage=5.0, clock=lambda: next(ticks))
        notifier = ChangeNotifier()
        notifier.subscribe(recorder)
        notifier.emit(0.1)
        notifier.emit(0.2)

    assert [(r.timestamp, r.voltage, r.current) for r in series] == [(10.0, 5.0, 0.1), (11.0, 5.0, 0.2)]
    assert log_path.read_text().strip().splitlines()[-1] == "11.000,5.000000,0.200000"
