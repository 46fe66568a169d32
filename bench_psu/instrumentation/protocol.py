"""ASCII command table and response parsing for the supply's SCPI-like dialect."""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Optional

from bench_psu.errors import OperationFailedError
from bench_psu.instrumentation.session import SerialSession

logger = logging.getLogger(__name__)

_LEADING_NUMBER = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class Command(str, Enum):
    """Fixed mnemonic table (operation -> device syntax)."""

    WRITE_VOLTAGE = "VOLT"
    WRITE_CURRENT = "CURR"
    WRITE_MAX_CURRENT = "IMAX"
    READ_VOLTAGE = "MEAS:VOLT?"
    READ_CURRENT = "MEAS:CURR?"
    READ_MAX_CURRENT = "IMAX?"
    QUERY_POWER = "OUTP?"
    POWER_ON = "OUTP ON"
    POWER_OFF = "OUTP OFF"


def format_command(command: Command, param: Optional[str] = None) -> str:
    if param:
        return f"{command.value} {param}\n"
    return f"{command.value}\n"


def format_number(value: float) -> str:
    return f"{value:.6f}"


def parse_float(response: str) -> float:
    """Read the leading decimal number of ``response`` (``"12.5V"`` -> 12.5)."""
    match = _LEADING_NUMBER.match(response)
    if match is None:
        logger.warning("Unparsable numeric response %r", response)
        raise OperationFailedError(f"Failed to parse float from response: {response!r}")
    return float(match.group(0))


def parse_power_state(response: str) -> bool:
    """``'1...'`` is on, ``'0...'`` is off; anything else is an error."""
    text = response.strip()
    if text[:1] == "1":
        return True
    if text[:1] == "0":
        return False
    logger.warning("Unknown power state response %r", response)
    raise OperationFailedError(f"Unknown power state response: {response!r}")


class CommandProtocol:
    """Formats commands and performs exchanges over a :class:`SerialSession`."""

    def __init__(self, session: SerialSession) -> None:
        self.session = session

    def send(self, command: Command, param: Optional[str] = None) -> None:
        self.session.exchange(format_command(command, param), expect_reply=False)

    def send_and_read(self, command: Command, param: Optional[str] = None) -> str:
        reply = self.session.exchange(format_command(command, param), expect_reply=True)
        return reply or ""

    def query_float(self, command: Command) -> float:
        return parse_float(self.send_and_read(command))

    def query_power_state(self) -> bool:
        return parse_power_state(self.send_and_read(Command.QUERY_POWER))
