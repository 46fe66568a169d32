"""One-way channel for current-change notifications."""

from __future__ import annotations

import logging
import threading
from typing import Callable, List

logger = logging.getLogger(__name__)

CurrentCallback = Callable[[float], None]


class ChangeNotifier:
    """Fan-out of ``on_current_changed(value)`` events.

    Callbacks run in the emitting (poller) thread; consumers marshal to their
    own context if they need to.
    """

    def __init__(self) -> None:
        self._callbacks: List[CurrentCallback] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: CurrentCallback) -> Callable[[], None]:
        with self._lock:
            self._callbacks.append(callback)

        def _unsubscribe() -> None:
            self.unsubscribe(callback)

        return _unsubscribe

    def unsubscribe(self, callback: CurrentCallback) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def emit(self, value: float) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback(value)
            except Exception:
                logger.exception("Current-change subscriber %r failed", callback)

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)
