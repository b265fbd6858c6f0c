"""Temperature sources that predate hwmon: ACPI, the thermal class and omnibook."""

from __future__ import annotations

import logging
import os
import re
from typing import Optional

from models.records import Emit, SensorCategory, SensorReading
from services.hwmon import DEGREES_CELSIUS
from services.probe import FilesystemProbe

logger = logging.getLogger(__name__)

_ACPI_TEMPERATURE_RE = re.compile(r"\s*temperature:\s*(-?\d+)\s*C")
_OMNIBOOK_TEMPERATURE_RE = re.compile(r"\s*CPU temperature:\s*(-?\d+)\s*C")
_MILLIDEGREES_RE = re.compile(r"\s*(-?\d+)")


def _temperature(label: str, source: str, value: float) -> SensorReading:
    return SensorReading(
        category=SensorCategory.temperature,
        label=label,
        source=source,
        value=value,
        unit=DEGREES_CELSIUS,
    )


class AcpiThermalBackend:
    """Zones under ``/proc/acpi/thermal_zone/<zone>/temperature``."""

    name = "acpi"
    source = "ACPI Thermal Zone"

    def __init__(
        self,
        probe: Optional[FilesystemProbe] = None,
        root: str = "/proc/acpi/thermal_zone",
    ) -> None:
        self.probe = probe or FilesystemProbe()
        self.root = root

    def scan(self, emit: Emit) -> None:
        if not self.probe.exists(self.root):
            return
        for zone in self.probe.list_dir(self.root) or []:
            contents = self.probe.read_text(os.path.join(self.root, zone, "temperature"))
            if contents is None:
                continue
            match = _ACPI_TEMPERATURE_RE.match(contents)
            if match is None:
                logger.debug("Unrecognized ACPI zone contents", extra={"path": zone})
                continue
            emit(_temperature(zone, self.source, float(match.group(1))))


class SysThermalBackend:
    """Zones under ``/sys/class/thermal/<zone>/temp``, in millidegrees."""

    name = "thermal"
    source = "thermal"

    def __init__(
        self,
        probe: Optional[FilesystemProbe] = None,
        root: str = "/sys/class/thermal",
    ) -> None:
        self.probe = probe or FilesystemProbe()
        self.root = root

    def scan(self, emit: Emit) -> None:
        if not self.probe.exists(self.root):
            return
        for zone in self.probe.list_dir(self.root) or []:
            contents = self.probe.read_text(os.path.join(self.root, zone, "temp"))
            if contents is None:
                continue
            match = _MILLIDEGREES_RE.match(contents)
            if match is None:
                continue
            emit(_temperature(zone, self.source, int(match.group(1)) / 1000.0))


class OmnibookBackend:
    """The single CPU temperature of the HP omnibook kernel module."""

    name = "omnibook"
    source = "omnibook"

    def __init__(
        self,
        probe: Optional[FilesystemProbe] = None,
        path: str = "/proc/omnibook/temperature",
    ) -> None:
        self.probe = probe or FilesystemProbe()
        self.path = path

    def scan(self, emit: Emit) -> None:
        contents = self.probe.read_text(self.path)
        if contents is None:
            return
        match = _OMNIBOOK_TEMPERATURE_RE.match(contents)
        if match is not None:
            emit(_temperature("CPU", self.source, float(match.group(1))))
