from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple


_CONFIG_PATHS_ENV = "SENSORS_CONFIG_PATHS"
_HWMON_ROOT_ENV = "SENSORS_HWMON_ROOT"
_ACPI_ROOT_ENV = "SENSORS_ACPI_THERMAL_ROOT"
_THERMAL_ROOT_ENV = "SENSORS_THERMAL_ROOT"
_OMNIBOOK_PATH_ENV = "SENSORS_OMNIBOOK_PATH"
_HDDTEMP_HOST_ENV = "HDDTEMP_HOST"
_HDDTEMP_PORT_ENV = "HDDTEMP_PORT"
_HDDTEMP_TIMEOUT_ENV = "HDDTEMP_TIMEOUT"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_CONFIG_PATHS = ("/etc/sensors3.conf", "/etc/sensors.conf")


@dataclass(frozen=True)
class Settings:
    sensors_config_paths: Tuple[str, ...]
    hwmon_root: str
    acpi_thermal_root: str
    thermal_root: str
    omnibook_path: str
    hddtemp_host: str
    hddtemp_port: int
    hddtemp_timeout: float
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_paths_env(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    paths = tuple(part.strip() for part in value.split(os.pathsep) if part.strip())
    return paths or default


def _read_port(default: int) -> int:
    value = os.getenv(_HDDTEMP_PORT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if 0 < parsed < 65536 else default


def _read_timeout(default: float) -> float:
    value = os.getenv(_HDDTEMP_TIMEOUT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        sensors_config_paths=_read_paths_env(_CONFIG_PATHS_ENV, DEFAULT_CONFIG_PATHS),
        hwmon_root=_read_str_env(_HWMON_ROOT_ENV, "/sys/class/hwmon"),
        acpi_thermal_root=_read_str_env(_ACPI_ROOT_ENV, "/proc/acpi/thermal_zone"),
        thermal_root=_read_str_env(_THERMAL_ROOT_ENV, "/sys/class/thermal"),
        omnibook_path=_read_str_env(_OMNIBOOK_PATH_ENV, "/proc/omnibook/temperature"),
        hddtemp_host=_read_str_env(_HDDTEMP_HOST_ENV, "127.0.0.1"),
        hddtemp_port=_read_port(7634),
        hddtemp_timeout=_read_timeout(2.0),
        log_level=_read_log_level("INFO"),
    )
