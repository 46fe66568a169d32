"""Instrumentation interfaces: serial session, command protocol, supply controller."""

from .mock import SimulatedSupply
from .protocol import Command, CommandProtocol, format_command, parse_float, parse_power_state
from .session import DEFAULT_BAUDRATE, DEFAULT_TIMEOUT_S, SerialSession
from .supply import PowerSupply

__all__ = [
    "Command",
    "CommandProtocol",
    "DEFAULT_BAUDRATE",
    "DEFAULT_TIMEOUT_S",
    "PowerSupply",
    "SerialSession",
    "SimulatedSupply",
    "format_command",
    "parse_float",
    "parse_power_state",
]
