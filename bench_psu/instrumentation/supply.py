"""Device controller for a line-protocol bench power supply."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, TypeVar

from bench_psu.errors import PowerSupplyError, PsError, Result
from bench_psu.instrumentation.protocol import Command, CommandProtocol, format_number
from bench_psu.instrumentation.session import (
    DEFAULT_BAUDRATE,
    DEFAULT_TIMEOUT_S,
    SerialFactory,
    SerialSession,
)
from bench_psu.telemetry.notifier import ChangeNotifier, CurrentCallback
from bench_psu.telemetry.poller import DEFAULT_SAMPLE_INTERVAL_S, CurrentPoller

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PowerSupply:
    """Power toggle, voltage and current access over one serial session.

    Operations report their outcome as a :class:`~bench_psu.errors.Result`
    instead of raising. A failed command leaves the session open; only
    :meth:`close` or a failed :meth:`open` closes it.
    """

    def __init__(
        self,
        port: Optional[str] = None,
        baudrate: int = DEFAULT_BAUDRATE,
        timeout: float = DEFAULT_TIMEOUT_S,
        serial_factory: Optional[SerialFactory] = None,
        notifier: Optional[ChangeNotifier] = None,
    ) -> None:
        self.session = SerialSession(baudrate=baudrate, timeout=timeout, serial_factory=serial_factory)
        self.protocol = CommandProtocol(self.session)
        self.notifier = notifier or ChangeNotifier()
        self._poller: Optional[CurrentPoller] = None
        self._poller_lock = threading.Lock()
        self._unsubscribe: Optional[Callable[[], None]] = None
        if port:
            result = self.open(port)
            if not result.ok:
                logger.warning("Failed to open port %s (%s)", port, result.error.name)

    def __enter__(self) -> "PowerSupply":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def port(self) -> str:
        return self.session.port

    # -- session ---------------------------------------------------------
    def open(self, port: str) -> Result[None]:
        if self.session.is_open() and port == self.session.port:
            return Result.success()
        self.stop_monitoring()
        try:
            self.session.open(port)
        except PowerSupplyError as exc:
            return Result.failure(exc.kind)
        return Result.success()

    def close(self) -> None:
        """Stop monitoring, then release the session."""
        self.stop_monitoring()
        self.session.close()

    def is_open(self) -> bool:
        return self.session.is_open()

    # -- power -----------------------------------------------------------
    def turn_on(self) -> Result[None]:
        result = self._call("turn on", lambda: self.protocol.send(Command.POWER_ON))
        if result.ok:
            logger.info("Output turned on")
        return result

    def turn_off(self) -> Result[None]:
        result = self._call("turn off", lambda: self.protocol.send(Command.POWER_OFF))
        if result.ok:
            logger.info("Output turned off")
        return result

    def is_on(self) -> Result[bool]:
        return self._call("query power state", self.protocol.query_power_state)

    def toggle(self) -> Result[bool]:
        """Flip the output state; the value is the new state."""
        state = self.is_on()
        if not state.ok:
            return state
        if state.value:
            result = self.turn_off()
        else:
            result = self.turn_on()
        if not result.ok:
            return Result.failure(result.error)
        return Result.success(not state.value)

    # -- set-points and measurements --------------------------------------
    def write_voltage(self, volts: float) -> Result[None]:
        return self._call(
            f"set voltage to {volts}V",
            lambda: self.protocol.send(Command.WRITE_VOLTAGE, format_number(volts)),
        )

    def write_current(self, amps: float) -> Result[None]:
        return self._call(
            f"set current to {amps}A",
            lambda: self.protocol.send(Command.WRITE_CURRENT, format_number(amps)),
        )

    def write_max_current(self, amps: float) -> Result[None]:
        return self._call(
            f"set max current to {amps}A",
            lambda: self.protocol.send(Command.WRITE_MAX_CURRENT, format_number(amps)),
        )

    def read_voltage(self) -> Result[float]:
        return self._call("read voltage", lambda: self.protocol.query_float(Command.READ_VOLTAGE))

    def read_current(self) -> Result[float]:
        return self._call("read current", lambda: self.protocol.query_float(Command.READ_CURRENT))

    def read_max_current(self) -> Result[float]:
        return self._call("read max current", lambda: self.protocol.query_float(Command.READ_MAX_CURRENT))

    # -- monitoring ------------------------------------------------------
    @property
    def poller(self) -> Optional[CurrentPoller]:
        return self._poller

    def start_monitoring(
        self,
        interval_seconds: float = DEFAULT_SAMPLE_INTERVAL_S,
        on_current_changed: Optional[CurrentCallback] = None,
    ) -> CurrentPoller:
        """Start the background current poller.

        While a poller is already running this is a no-op and
        ``on_current_changed`` is not subscribed again. The callback stays
        subscribed until :meth:`stop_monitoring`.
        """
        with self._poller_lock:
            if self._poller is not None and self._poller.running:
                return self._poller
            if self._unsubscribe is not None:
                self._unsubscribe()
                self._unsubscribe = None
            if on_current_changed is not None:
                self._unsubscribe = self.notifier.subscribe(on_current_changed)
            self._poller = CurrentPoller(self, self.notifier, interval=interval_seconds)
            self._poller.start()
            return self._poller

    def stop_monitoring(self) -> None:
        with self._poller_lock:
            poller, self._poller = self._poller, None
            unsubscribe, self._unsubscribe = self._unsubscribe, None
        if poller is not None:
            poller.stop(timeout=poller.interval + self.session.timeout + 1.0)
        if unsubscribe is not None:
            unsubscribe()

    # -- helpers ---------------------------------------------------------
    def _call(self, description: str, action: Callable[[], T]) -> Result[T]:
        if not self.is_open():
            logger.warning("Cannot %s: device not connected", description)
            return Result.failure(PsError.DEVICE_NOT_CONNECTED)
        try:
            value = action()
        except PowerSupplyError as exc:
            logger.warning("Failed to %s: %s", description, exc)
            return Result.failure(exc.kind)
        return Result.success(value)
