"""Error kinds and result containers shared by the power-supply layers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class PsError(Enum):
    SUCCESS = 0
    INVALID_VOLTAGE = 1
    INVALID_CURRENT = 2
    DEVICE_NOT_CONNECTED = 3
    OPERATION_FAILED = 4


class PowerSupplyError(RuntimeError):
    """Base exception carrying a :class:`PsError` kind."""

    kind = PsError.OPERATION_FAILED

    def __init__(self, message: str, kind: Optional[PsError] = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class DeviceNotConnectedError(PowerSupplyError):
    """Raised when a command is attempted without an open session."""

    kind = PsError.DEVICE_NOT_CONNECTED


class OperationFailedError(PowerSupplyError):
    """Raised on transport failures or unparsable responses."""

    kind = PsError.OPERATION_FAILED


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a controller operation."""

    error: PsError = PsError.SUCCESS
    value: Optional[T] = None

    @property
    def ok(self) -> bool:
        return self.error is PsError.SUCCESS

    def unwrap(self) -> Optional[T]:
        """Return ``value`` or raise :class:`PowerSupplyError` for failures."""
        if not self.ok:
            raise PowerSupplyError(f"power supply operation failed: {self.error.name}", self.error)
        return self.value

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(PsError.SUCCESS, value)

    @classmethod
    def failure(cls, error: PsError) -> "Result[T]":
        return cls(error, None)


def validate_voltage(volts: float) -> PsError:
    """Caller-side range check for a voltage set-point."""
    if not math.isfinite(volts) or volts < 0:
        return PsError.INVALID_VOLTAGE
    return PsError.SUCCESS


def validate_current(amps: float) -> PsError:
    """Caller-side range check for a current limit."""
    if not math.isfinite(amps) or amps < 0:
        return PsError.INVALID_CURRENT
    return PsError.SUCCESS
