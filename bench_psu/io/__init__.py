"""I/O utilities (configuration)."""

from .settings import (
    DEFAULT_SETTINGS_PATH,
    SettingsError,
    SupplySettings,
    find_project_root,
    load_settings,
    load_supply_settings,
)

__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "SettingsError",
    "SupplySettings",
    "find_project_root",
    "load_settings",
    "load_supply_settings",
]
