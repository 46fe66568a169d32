"""Background sampling of the supply's output current."""

from __future__ import annotations

import logging
import threading
from typing import Optional, Protocol

from bench_psu.errors import Result
from bench_psu.telemetry.notifier import ChangeNotifier

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_INTERVAL_S = 1


class CurrentSource(Protocol):
    """Anything that can be asked for the present output current."""

    def is_open(self) -> bool:
        ...

    def read_current(self) -> Result[float]:
        ...


class CurrentPoller:
    """Samples current once per interval and emits only on change.

    Stopping is cooperative: an in-flight read completes, but nothing is
    emitted once :meth:`stop` has been called. The wait between cycles is
    interruptible.
    """

    def __init__(
        self,
        source: CurrentSource,
        notifier: ChangeNotifier,
        interval: float = DEFAULT_SAMPLE_INTERVAL_S,
    ) -> None:
        if interval <= 0:
            raise ValueError("Sample interval must be positive")
        self.source = source
        self.notifier = notifier
        self.interval = interval
        self.last_observed = 0.0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("Poller already started")
        self._thread = threading.Thread(target=self._run, name="current-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Request the loop to exit and wait for it unless called from inside it."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("Current poller did not stop within %.1fs", timeout or 0.0)

    def poll_once(self) -> Optional[float]:
        """Run one sampling cycle; return the value emitted, if any."""
        if not self.source.is_open():
            logger.debug("Port not open, skipping sample")
            return None

        result = self.source.read_current()
        if not result.ok or result.value is None:
            logger.warning("Failed to get current (%s)", result.error.name)
            return None

        if self._stop_event.is_set():
            return None
        value = result.value
        if value == self.last_observed:
            return None
        self.last_observed = value
        self.notifier.emit(value)
        return value

    def _run(self) -> None:
        logger.debug("Current poller started (interval %ss)", self.interval)
        while not self._stop_event.is_set():
            self.poll_once()
            self._stop_event.wait(self.interval)
        logger.debug("Current poller stopped")
