"""Bounded history of current changes with a min/max/last summary."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterator, List, Optional


@dataclass
class TelemetryRecord:
    """Single telemetry data point."""

    timestamp: float
    voltage: Optional[float] = None
    current: Optional[float] = None


@dataclass(frozen=True)
class CurrentSummary:
    samples: int
    minimum: float
    maximum: float
    last: float
    first_timestamp: float
    last_timestamp: float

    @property
    def span_s(self) -> float:
        return self.last_timestamp - self.first_timestamp


class TelemetrySeries:
    """Keeps the newest ``max_points`` records; safe to feed from the poller thread."""

    def __init__(self, max_points: int = 500) -> None:
        if max_points <= 0:
            raise ValueError("max_points must be positive")
        self.max_points = max_points
        self._records: Deque[TelemetryRecord] = deque(maxlen=max_points)
        self._lock = threading.Lock()

    def append(self, record: TelemetryRecord) -> None:
        with self._lock:
            self._records.append(record)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __iter__(self) -> Iterator[TelemetryRecord]:
        return iter(self.snapshot())

    def snapshot(self) -> List[TelemetryRecord]:
        with self._lock:
            return list(self._records)

    def latest(self) -> Optional[TelemetryRecord]:
        with self._lock:
            return self._records[-1] if self._records else None

    def summary(self) -> Optional[CurrentSummary]:
        """Summarise the records that carry a current value, or ``None`` if there are none."""
        measured = [rec for rec in self.snapshot() if rec.current is not None]
        if not measured:
            return None
        currents = [rec.current for rec in measured]
        return CurrentSummary(
            samples=len(measured),
            minimum=min(currents),
            maximum=max(currents),
            last=currents[-1],
            first_timestamp=measured[0].timestamp,
            last_timestamp=measured[-1].timestamp,
        )
