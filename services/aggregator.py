"""Run every sensor backend and publish the merged result."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from threading import Lock
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple

from models.records import Emit, SensorBackend, SensorReading
from services.hddtemp import HddtempBackend
from services.hwmon import HwmonBackend
from services.overrides import ConfigOverrideStore
from services.probe import FilesystemProbe
from services.thermal import AcpiThermalBackend, OmnibookBackend, SysThermalBackend
from settings import get_settings

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 1000


@dataclass(frozen=True)
class ScanResult:
    """Readings of one complete scan, in emission order."""

    readings: Tuple[SensorReading, ...] = ()
    intervals: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    scanned_at: Optional[datetime] = field(default=None, compare=False)
    scan_ms: int = field(default=0, compare=False)

    def lines(self) -> List[str]:
        return [reading.render() for reading in self.readings]

    def interval_lines(self) -> List[str]:
        return [f"UpdateInterval${key}={ms}" for key, ms in self.intervals.items()]

    def render(self) -> str:
        return "".join(f"{line}\n" for line in self.lines())

    def render_intervals(self) -> str:
        return "".join(f"{line}\n" for line in self.interval_lines())


class SensorAggregator:
    """Scans the backends in order and swaps in a fresh ``ScanResult``.

    Readers of ``published`` see either the previous result or the new one,
    never a partially built one.
    """

    def __init__(
        self,
        backends: Sequence[SensorBackend],
        interval_ms: int = DEFAULT_INTERVAL_MS,
    ) -> None:
        self.backends = tuple(backends)
        self.interval_ms = interval_ms
        self._published: Optional[ScanResult] = None
        self._scan_lock = Lock()

    @property
    def published(self) -> Optional[ScanResult]:
        return self._published

    def scan_all(self) -> ScanResult:
        with self._scan_lock:
            start_time = time.perf_counter()
            readings: List[SensorReading] = []
            for backend in self.backends:
                self._run_backend(backend, readings.append)

            intervals = {reading.key: self.interval_ms for reading in readings}
            result = ScanResult(
                readings=tuple(readings),
                intervals=MappingProxyType(intervals),
                scanned_at=datetime.now(timezone.utc),
                scan_ms=int((time.perf_counter() - start_time) * 1000),
            )
            self._published = result

        logger.info(
            "Sensor scan finished",
            extra={"reading_count": len(result.readings), "scan_ms": result.scan_ms},
        )
        return result

    @staticmethod
    def _run_backend(backend: SensorBackend, emit: Emit) -> None:
        try:
            backend.scan(emit)
        except Exception:
            logger.exception("Sensor backend failed", extra={"backend": backend.name})


@lru_cache
def build_default_aggregator() -> SensorAggregator:
    """Factory that wires every backend from the process settings."""
    settings = get_settings()
    probe = FilesystemProbe()
    overrides = ConfigOverrideStore(settings.sensors_config_paths, probe=probe)
    backends: List[SensorBackend] = [
        HwmonBackend(overrides, probe=probe, root=settings.hwmon_root),
        AcpiThermalBackend(probe=probe, root=settings.acpi_thermal_root),
        SysThermalBackend(probe=probe, root=settings.thermal_root),
        OmnibookBackend(probe=probe, path=settings.omnibook_path),
        HddtempBackend(
            host=settings.hddtemp_host,
            port=settings.hddtemp_port,
            timeout=settings.hddtemp_timeout,
        ),
    ]
    return SensorAggregator(backends)
