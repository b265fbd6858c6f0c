from __future__ import annotations

import os
from typing import Iterable

import pytest

from services.aggregator import build_default_aggregator
from services.hddtemp import HddtempBackend
from services.hwmon import HwmonBackend
from services.thermal import AcpiThermalBackend, OmnibookBackend, SysThermalBackend
from settings import DEFAULT_CONFIG_PATHS, get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterable[None]:
    _clear_caches((get_settings, build_default_aggregator))
    yield
    _clear_caches((get_settings, build_default_aggregator))


def test_defaults(monkeypatch) -> None:
    for name in (
        "SENSORS_CONFIG_PATHS",
        "SENSORS_HWMON_ROOT",
        "HDDTEMP_PORT",
        "HDDTEMP_TIMEOUT",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.sensors_config_paths == DEFAULT_CONFIG_PATHS
    assert settings.hwmon_root == "/sys/class/hwmon"
    assert settings.hddtemp_host == "127.0.0.1"
    assert settings.hddtemp_port == 7634
    assert settings.hddtemp_timeout == 2.0
    assert settings.log_level == "INFO"


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    conf_a = tmp_path / "a.conf"
    conf_b = tmp_path / "b.conf"

    monkeypatch.setenv("SENSORS_CONFIG_PATHS", f"{conf_a}{os.pathsep}{conf_b}")
    monkeypatch.setenv("SENSORS_HWMON_ROOT", str(tmp_path / "hwmon"))
    monkeypatch.setenv("SENSORS_ACPI_THERMAL_ROOT", str(tmp_path / "acpi"))
    monkeypatch.setenv("SENSORS_THERMAL_ROOT", str(tmp_path / "thermal"))
    monkeypatch.setenv("SENSORS_OMNIBOOK_PATH", str(tmp_path / "omnibook"))
    monkeypatch.setenv("HDDTEMP_HOST", "10.0.0.5")
    monkeypatch.setenv("HDDTEMP_PORT", "17634")
    monkeypatch.setenv("HDDTEMP_TIMEOUT", "0.75")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    aggregator = build_default_aggregator()
    hwmon, acpi, thermal, omnibook, hddtemp = aggregator.backends

    assert isinstance(hwmon, HwmonBackend)
    assert hwmon.root == str(tmp_path / "hwmon")
    assert hwmon.overrides.config_paths == (str(conf_a), str(conf_b))
    assert isinstance(acpi, AcpiThermalBackend) and acpi.root == str(tmp_path / "acpi")
    assert isinstance(thermal, SysThermalBackend) and thermal.root == str(tmp_path / "thermal")
    assert isinstance(omnibook, OmnibookBackend) and omnibook.path == str(tmp_path / "omnibook")
    assert isinstance(hddtemp, HddtempBackend)
    assert (hddtemp.host, hddtemp.port, hddtemp.timeout) == ("10.0.0.5", 17634, 0.75)
    assert get_settings().log_level == "DEBUG"


@pytest.mark.parametrize("port", ["", "abc", "0", "70000"])
def test_invalid_port_falls_back_to_default(monkeypatch, port: str) -> None:
    monkeypatch.setenv("HDDTEMP_PORT", port)

    assert get_settings().hddtemp_port == 7634


@pytest.mark.parametrize("timeout", ["", "soon", "-1"])
def test_invalid_timeout_falls_back_to_default(monkeypatch, timeout: str) -> None:
    monkeypatch.setenv("HDDTEMP_TIMEOUT", timeout)

    assert get_settings().hddtemp_timeout == 2.0
