"""YAML configuration for the supply connection and telemetry."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

import yaml

from bench_psu.instrumentation.session import DEFAULT_BAUDRATE, DEFAULT_TIMEOUT_S
from bench_psu.telemetry.poller import DEFAULT_SAMPLE_INTERVAL_S

PROJECT_MARKERS: Iterable[str] = (".git", "pyproject.toml", "config")
DEFAULT_SETTINGS_PATH = Path("config/settings.yml")

PathLike = Union[str, os.PathLike]


class SettingsError(RuntimeError):
    """Raised when the settings file is unreadable or holds invalid values."""


@dataclass(frozen=True)
class SupplySettings:
    """Connection and polling parameters for one supply."""

    port: str = ""
    baudrate: int = DEFAULT_BAUDRATE
    timeout_ms: int = int(DEFAULT_TIMEOUT_S * 1000)
    sample_interval_s: int = DEFAULT_SAMPLE_INTERVAL_S
    max_current_a: Optional[float] = None
    log_level: str = "INFO"

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000.0


def find_project_root(markers: Iterable[str] = PROJECT_MARKERS) -> Path:
    """Attempt to locate the repository root by walking up until a marker file/dir appears."""
    start = Path(__file__).resolve().parent
    for candidate in [start] + list(start.parents):
        for marker in markers:
            if (candidate / marker).exists():
                return candidate
    return start


def _resolve(path: PathLike, project_root: Path) -> Path:
    target = Path(path)
    if not target.is_absolute():
        target = project_root / target
    return target


def _load_yaml(target: Path) -> Dict[str, Any]:
    if not target.exists():
        raise FileNotFoundError(f"settings file not found: {target}")
    try:
        with open(target, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise SettingsError(f"Invalid YAML in settings file {target}: {exc}") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {target} must contain a mapping")
    return data


def load_settings(path: Optional[PathLike] = None) -> Dict[str, Any]:
    """Load the YAML settings file, defaulting to ``config/settings.yml`` under the project root."""
    project_root = find_project_root()
    target = _resolve(path or DEFAULT_SETTINGS_PATH, project_root)
    return _load_yaml(target)


def _positive_int(section: Dict[str, Any], key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise SettingsError(f"power_supply.{key} must be a positive integer, got {value!r}")
    return value


def load_supply_settings(path: Optional[PathLike] = None) -> SupplySettings:
    """Load ``power_supply`` and ``logging`` sections into a :class:`SupplySettings`."""
    data = load_settings(path)
    section = data.get("power_supply") or {}
    if not isinstance(section, dict):
        raise SettingsError("power_supply must be a mapping")

    port = section.get("port") or ""
    if not isinstance(port, str):
        raise SettingsError(f"power_supply.port must be a string, got {port!r}")

    max_current = section.get("max_current_a")
    if max_current is not None:
        if isinstance(max_current, bool) or not isinstance(max_current, (int, float)) or max_current < 0:
            raise SettingsError(f"power_supply.max_current_a must be a non-negative number, got {max_current!r}")
        max_current = float(max_current)

    log_level = (data.get("logging") or {}).get("level", "INFO")

    return SupplySettings(
        port=port,
        baudrate=_positive_int(section, "baudrate", DEFAULT_BAUDRATE),
        timeout_ms=_positive_int(section, "timeout_ms", int(DEFAULT_TIMEOUT_S * 1000)),
        sample_interval_s=_positive_int(section, "sample_interval_s", DEFAULT_SAMPLE_INTERVAL_S),
        max_current_a=max_current,
        log_level=str(log_level).upper(),
    )
