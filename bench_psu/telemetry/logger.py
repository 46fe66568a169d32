"""CSV telemetry logging and the recorder that feeds it from notifications."""

from __future__ import annotations

import csv
import threading
import time
from pathlib import Path
from typing import Callable, Iterable, Optional

from bench_psu.telemetry.series import TelemetryRecord, TelemetrySeries


class TelemetryLogger:
    """Append-only CSV logger for telemetry data."""

    def __init__(self, path: Path, write_header: bool = True) -> None:
        self.path = path
        self._file = None
        self._writer = None
        self._write_header = write_header

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        exists = self.path.exists()
        self._file = self.path.open("a", newline="")
        self._writer = csv.writer(self._file)
        if self._write_header and not exists:
            self._writer.writerow(["timestamp", "voltage", "current"])

    def close(self) -> None:
        if self._file:
            self._file.close()
        self._file = None
        self._writer = None

    def log(self, record: TelemetryRecord) -> None:
        if not self._writer:
            self.open()
        self._writer.writerow([
            f"{record.timestamp:.3f}",
            "" if record.voltage is None else f"{record.voltage:.6f}",
            "" if record.current is None else f"{record.current:.6f}",
        ])
        self._file.flush()

    def log_many(self, records: Iterable[TelemetryRecord]) -> None:
        for record in records:
            self.log(record)


class TelemetryRecorder:
    """Current-change subscriber that stamps values and stores them.

    Subscribe an instance to a :class:`~bench_psu.telemetry.ChangeNotifier`;
    each notification becomes a :class:`TelemetryRecord` appended to the
    series and/or written to the CSV log.
    """

    def __init__(
        self,
        series: Optional[TelemetrySeries] = None,
        telemetry_log: Optional[TelemetryLogger] = None,
        voltage: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.series = series
        self.telemetry_log = telemetry_log
        self.voltage = voltage
        self._clock = clock
        self._lock = threading.Lock()

    def __call__(self, current: float) -> None:
        record = TelemetryRecord(timestamp=self._clock(), voltage=self.voltage, current=current)
        with self._lock:
            if self.series is not None:
                self.series.append(record)
            if self.telemetry_log is not None:
                self.telemetry_log.log(record)
