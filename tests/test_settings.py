from pathlib import Path

import pytest
import yaml

from bench_psu.io import SettingsError, SupplySettings, load_settings, load_supply_settings


def write_settings(tmp_path: Path, data) -> Path:
    path = tmp_path / "settings.yml"
    path.write_text(yaml.safe_dump(data))
    return path


def test_default_settings_structure():
    data = load_settings()
    assert "power_supply" in data
    section = data["power_supply"]
    assert section["baudrate"] == 9600
    assert section["timeout_ms"] == 2000
    assert section["sample_interval_s"] == 1


def test_load_supply_settings_applies_defaults(tmp_path: Path):
    path = write_settings(tmp_path, {"power_supply": {"port": "COM4"}})
    settings = load_supply_settings(path)
    assert settings == SupplySettings(port="COM4")
    assert settings.timeout_s == 2.0


def test_load_supply_settings_reads_values(tmp_path: Path):
    path = write_settings(
        tmp_path,
        {
            "power_supply": {"port": "/dev/ttyACM0", "sample_interval_s": 5, "max_current_a": 2},
            "logging": {"level": "debug"},
        },
    )
    settings = load_supply_settings(path)
    assert settings.port == "/dev/ttyACM0"
    assert settings.sample_interval_s == 5
    assert settings.max_current_a == 2.0
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "section",
    [
        {"sample_interval_s": 0},
        {"sample_interval_s": "fast"},
        {"baudrate": True},
        {"port": 3},
        {"max_current_a": -1},
    ],
)
def test_invalid_values_raise(tmp_path: Path, section):
    path = write_settings(tmp_path, {"power_supply": section})
    with pytest.raises(SettingsError):
        load_supply_settings(path)


def test_invalid_yaml_raises(tmp_path: Path):
    path = tmp_path / "settings.yml"
    path.write_text("power_supply: [unclosed\n")
    with pytest.raises(SettingsError):
        load_supply_settings(path)


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "absent.yml")
