"""Serial transport session owning the single connection to the supply."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

import serial

from bench_psu.errors import DeviceNotConnectedError, OperationFailedError

logger = logging.getLogger(__name__)

DEFAULT_BAUDRATE = 9600
DEFAULT_TIMEOUT_S = 2.0
LINE_TERMINATOR = "\n"
MIN_PORT_LENGTH = 4

SerialFactory = Callable[[str], Any]


def default_serial_factory(port: str) -> serial.Serial:
    """Return an unopened pyserial handle for ``port`` (device path or URL)."""
    return serial.serial_for_url(port, do_not_open=True)


class SerialSession:
    """One serial line to one device.

    Every exchange (write, then read the single reply) holds ``lock`` end to
    end, and so does :meth:`close`. Foreground commands and the background
    poller therefore never interleave bytes on the wire.
    """

    def __init__(
        self,
        baudrate: int = DEFAULT_BAUDRATE,
        timeout: float = DEFAULT_TIMEOUT_S,
        serial_factory: Optional[SerialFactory] = None,
    ) -> None:
        self.baudrate = baudrate
        self.timeout = timeout
        self.port = ""
        self._factory = serial_factory or default_serial_factory
        self._serial: Optional[Any] = None
        self._lock = threading.RLock()

    def is_open(self) -> bool:
        handle = self._serial
        return handle is not None and bool(handle.is_open)

    # -- lifecycle -------------------------------------------------------
    def open(self, port: str) -> None:
        """Open and configure ``port``; nothing survives a failed attempt."""
        with self._lock:
            self.close()
            if not port or len(port) < MIN_PORT_LENGTH:
                logger.warning("Invalid port %r", port)
                raise DeviceNotConnectedError(f"Invalid port {port!r}")

            handle = None
            try:
                handle = self._factory(port)
                handle.baudrate = self.baudrate
                handle.bytesize = serial.EIGHTBITS
                handle.parity = serial.PARITY_NONE
                handle.stopbits = serial.STOPBITS_ONE
                handle.xonxoff = False
                handle.rtscts = False
                handle.dsrdtr = False
                handle.timeout = self.timeout
                handle.write_timeout = self.timeout
                if not handle.is_open:
                    handle.open()
                handle.reset_input_buffer()
            except (serial.SerialException, OSError, ValueError) as exc:
                logger.warning("Failed to open %s: %s", port, exc)
                if handle is not None:
                    _release(handle)
                raise DeviceNotConnectedError(f"Failed to open {port}: {exc}") from exc

            self._serial = handle
            self.port = port
            logger.info("Opened %s at %d baud", port, self.baudrate)

    def close(self) -> None:
        """Release the handle if held. Safe to call repeatedly."""
        with self._lock:
            handle, self._serial = self._serial, None
            if handle is not None:
                _release(handle)
                logger.info("Closed %s", self.port)
            self.port = ""

    # -- raw line I/O ----------------------------------------------------
    def write_line(self, text: str) -> None:
        with self._lock:
            handle = self._require_open()
            if not text.endswith(LINE_TERMINATOR):
                text += LINE_TERMINATOR
            logger.debug("-> %r", text)
            try:
                handle.write(text.encode("ascii"))
            except (serial.SerialException, OSError) as exc:
                raise OperationFailedError(f"Failed to send {text.strip()!r}: {exc}") from exc

    def read_line(self) -> str:
        with self._lock:
            handle = self._require_open()
            try:
                raw = handle.readline()
            except (serial.SerialException, OSError) as exc:
                raise OperationFailedError(f"Failed to read response: {exc}") from exc
            if not raw.endswith(LINE_TERMINATOR.encode("ascii")):
                raise OperationFailedError(f"Timed out waiting for response (got {raw!r})")
            line = raw.decode("ascii", errors="ignore").strip()
            logger.debug("<- %r", line)
            return line

    def exchange(self, text: str, expect_reply: bool = True) -> Optional[str]:
        """Send one line and, if ``expect_reply``, read back its single reply."""
        with self._lock:
            handle = self._require_open()
            if expect_reply:
                # Drop a late reply left over from an earlier timed-out query.
                try:
                    handle.reset_input_buffer()
                except (serial.SerialException, OSError) as exc:
                    raise OperationFailedError(f"Failed to flush input: {exc}") from exc
            self.write_line(text)
            if not expect_reply:
                return None
            return self.read_line()

    def _require_open(self) -> Any:
        handle = self._serial
        if handle is None or not handle.is_open:
            raise DeviceNotConnectedError("Serial session is not open")
        return handle


def _release(handle: Any) -> None:
    try:
        handle.close()
    except (serial.SerialException, OSError) as exc:
        logger.warning("Error while closing serial handle: %s", exc)
