"""In-process stand-in for a serial-attached bench supply."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Deque, Iterable, Iterator, List, Optional

import serial


class SimulatedSupply:
    """Looks like an unopened pyserial handle and answers the supply's dialect.

    Written set-points are echoed back by the matching queries. Measured
    current comes from ``current_readings`` when given, otherwise from an
    ohmic load clamped to the max-current limit while the output is on.
    An empty reply queue makes :meth:`readline` return ``b""`` the way
    pyserial does on timeout.
    """

    def __init__(
        self,
        load_ohms: float = 10.0,
        max_current: float = 1.0,
        current_readings: Optional[Iterable[float]] = None,
        response_delay: float = 0.0,
        refuse_open: bool = False,
    ) -> None:
        self.port: Optional[str] = None
        self.is_open = False
        self.baudrate = None
        self.bytesize = None
        self.parity = None
        self.stopbits = None
        self.xonxoff = None
        self.rtscts = None
        self.dsrdtr = None
        self.timeout = None
        self.write_timeout = None

        self.powered = False
        self.voltage = 0.0
        self.current_setpoint = 0.0
        self.max_current = max_current
        self.load_ohms = load_ohms
        self.response_delay = response_delay
        self.refuse_open = refuse_open
        self.unplugged = False
        self.written: List[str] = []
        self._readings: Optional[Iterator[float]] = iter(current_readings) if current_readings is not None else None
        self._replies: Deque[bytes] = deque()
        self._overrides: Deque[Optional[str]] = deque()
        self._lock = threading.Lock()

    def as_factory(self) -> Callable[[str], "SimulatedSupply"]:
        def _factory(port: str) -> "SimulatedSupply":
            self.port = port
            return self

        return _factory

    # -- fault injection -------------------------------------------------
    def override_next_reply(self, text: Optional[str]) -> None:
        """Replace the next query reply with ``text`` (``None`` means no reply)."""
        self._overrides.append(text)

    def unplug(self) -> None:
        self.unplugged = True

    # -- pyserial surface ------------------------------------------------
    def open(self) -> None:
        if self.refuse_open:
            raise serial.SerialException(f"could not open port {self.port}")
        self.is_open = True

    def close(self) -> None:
        self.is_open = False
        with self._lock:
            self._replies.clear()

    def reset_input_buffer(self) -> None:
        with self._lock:
            self._replies.clear()

    def write(self, data: bytes) -> int:
        if not self.is_open:
            raise serial.PortNotOpenError()
        if self.unplugged:
            raise serial.SerialException("device disconnected")
        text = data.decode("ascii")
        with self._lock:
            self.written.append(text)
            reply = self._handle(text.strip())
            if reply is not None:
                if self._overrides:
                    reply = self._overrides.popleft()
                if reply is not None:
                    self._replies.append(f"{reply}\n".encode("ascii"))
        return len(data)

    def readline(self) -> bytes:
        if not self.is_open:
            raise serial.PortNotOpenError()
        if self.unplugged:
            raise serial.SerialException("device disconnected")
        if self.response_delay:
            time.sleep(self.response_delay)
        with self._lock:
            if self._replies:
                return self._replies.popleft()
        return b""

    # -- device model ----------------------------------------------------
    def _handle(self, line: str) -> Optional[str]:
        mnemonic, _, param = line.partition(" ")
        if line == "OUTP ON":
            self.powered = True
        elif line == "OUTP OFF":
            self.powered = False
        elif line == "OUTP?":
            return "1" if self.powered else "0"
        elif line == "MEAS:VOLT?":
            return f"{self.voltage}"
        elif line == "MEAS:CURR?":
            return f"{self._measure_current()}"
        elif line == "IMAX?":
            return f"{self.max_current}"
        elif mnemonic == "VOLT":
            self.voltage = float(param)
        elif mnemonic == "CURR":
            self.current_setpoint = float(param)
        elif mnemonic == "IMAX":
            self.max_current = float(param)
        return None

    def _measure_current(self) -> float:
        if self._readings is not None:
            return next(self._readings, 0.0)
        if not self.powered or self.load_ohms <= 0:
            return 0.0
        return min(self.voltage / self.load_ohms, self.max_current)
