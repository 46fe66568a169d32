"""Current telemetry: background polling, change notification, recording."""

from .logger import TelemetryLogger, TelemetryRecorder
from .notifier import ChangeNotifier, CurrentCallback
from .poller import DEFAULT_SAMPLE_INTERVAL_S, CurrentPoller, CurrentSource
from .series import CurrentSummary, TelemetryRecord, TelemetrySeries

__all__ = [
    "ChangeNotifier",
    "CurrentSummary",
    "CurrentCallback",
    "CurrentPoller",
    "CurrentSource",
    "DEFAULT_SAMPLE_INTERVAL_S",
    "TelemetryLogger",
    "TelemetryRecord",
    "TelemetryRecorder",
    "TelemetrySeries",
]
