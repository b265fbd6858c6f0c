"""Sensors exposed through the kernel hwmon class (``/sys/class/hwmon``).

Each ``hwmonN`` directory is one monitoring chip. Channel files such as
``temp1_input`` hold integers in a kind-specific fixed-point scale; the
descriptor table below maps every supported kind to its file names, display
unit and scale divisor.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Pattern, Sequence, Tuple

from models.records import Emit, SensorCategory, SensorReading
from services.formula import FormulaError
from services.overrides import IGNORE_MARKER, ConfigOverrideStore
from services.probe import FilesystemProbe

logger = logging.getLogger(__name__)

DEGREES_CELSIUS = "°C"
HWMON_PREFIXES = ("device", "")


@dataclass(frozen=True)
class SensorKind:
    category: SensorCategory
    pattern: str
    value_file: str
    label_file: Optional[str]
    key_format: str
    unit: str
    adjust_ratio: float


SENSOR_KINDS: Tuple[SensorKind, ...] = (
    SensorKind(SensorCategory.fan, r"^fan([0-9]+)_input$",
               "fan%d_input", "fan%d_label", "fan%d", "RPM", 1.0),
    SensorKind(SensorCategory.temperature, r"^temp([0-9]+)_input$",
               "temp%d_input", "temp%d_label", "temp%d", DEGREES_CELSIUS, 1000.0),
    SensorKind(SensorCategory.voltage, r"^in([0-9]+)_input$",
               "in%d_input", "in%d_label", "in%d", "V", 1000.0),
    SensorKind(SensorCategory.current, r"^curr([0-9]+)_input$",
               "curr%d_input", "curr%d_label", "curr%d", "A", 1000.0),
    SensorKind(SensorCategory.power, r"^power([0-9]+)_input$",
               "power%d_input", "power%d_label", "power%d", "W", 1000000.0),
    SensorKind(SensorCategory.voltage, r"^cpu([0-9]+)_vid$",
               "cpu%d_vid", None, "cpu%d_vid", "V", 1000.0),
)


@dataclass(frozen=True)
class HwmonDevice:
    index: int
    path: str
    driver: str


def channel_range(pattern: Pattern[str], entries: Sequence[str]) -> range:
    """Return the indices between the smallest and largest matched channel.

    The range is empty when nothing matches. Indices inside it need not all
    exist on disk.
    """
    indices = [int(match.group(1)) for match in map(pattern.match, entries) if match]
    if not indices:
        return range(0)
    return range(min(indices), max(indices) + 1)


class HwmonBackend:
    name = "hwmon"

    def __init__(
        self,
        overrides: ConfigOverrideStore,
        probe: Optional[FilesystemProbe] = None,
        root: str = "/sys/class/hwmon",
        prefixes: Sequence[str] = HWMON_PREFIXES,
        kinds: Sequence[SensorKind] = SENSOR_KINDS,
    ) -> None:
        self.overrides = overrides
        self.probe = probe or FilesystemProbe()
        self.root = root
        self.prefixes = tuple(prefixes)
        self.kinds = tuple(kinds)
        self._first_run = True

    def devices(self) -> Iterator[HwmonDevice]:
        """Probe ``hwmon0``, ``hwmon1``, ... per prefix until one is missing."""
        for prefix in self.prefixes:
            index = 0
            while True:
                path = os.path.join(self.root, f"hwmon{index}", prefix)
                if not self.probe.exists(path):
                    break
                yield HwmonDevice(index=index, path=path, driver=self.resolve_driver(path))
                index += 1

    def resolve_driver(self, path: str) -> str:
        target = self.probe.read_link(os.path.join(path, "device", "driver"))
        if target is None:
            target = self.probe.read_link(os.path.join(path, "device"))
        if target is not None:
            driver = os.path.basename(target.rstrip("/"))
            if driver:
                return driver

        contents = self.probe.read_text(os.path.join(path, "name"))
        if contents is not None and contents.strip():
            return contents.strip()
        return "unknown"

    def scan(self, emit: Emit) -> None:
        for device in self.devices():
            logger.debug("Found hwmon device", extra={"hwmon": device.index, "driver": device.driver})
            if self._first_run:
                self.overrides.load(device.driver)

            entries = self.probe.list_dir(device.path)
            if entries is None:
                continue

            for kind in self.kinds:
                for reading in self._read_kind(device, kind, entries):
                    emit(reading)

        self._first_run = False

    def _read_kind(
        self, device: HwmonDevice, kind: SensorKind, entries: List[str]
    ) -> Iterator[SensorReading]:
        try:
            pattern = re.compile(kind.pattern)
        except re.error as exc:
            logger.warning(
                "Invalid channel pattern %r",
                kind.pattern,
                extra={"kind": kind.category.value, "reason": str(exc)},
            )
            return

        for index in channel_range(pattern, entries):
            contents = self.probe.read_text(os.path.join(device.path, kind.value_file % index))
            if contents is None:
                continue

            channel = kind.key_format % index
            name = self._resolve_name(device, kind, channel, index)
            if name == IGNORE_MARKER or self.overrides.is_ignored(device.driver, channel):
                continue

            try:
                value = float(contents) / kind.adjust_ratio
            except ValueError:
                logger.debug(
                    "Unparsable channel value",
                    extra={"driver": device.driver, "channel": channel, "reason": contents.strip()},
                )
                continue

            formula = self.overrides.formula_for(device.driver, channel)
            if formula is not None:
                try:
                    value = formula.evaluate(value)
                except FormulaError as exc:
                    logger.warning(
                        "Compute override failed",
                        extra={"driver": device.driver, "channel": channel, "reason": str(exc)},
                    )
                    continue

            yield SensorReading(
                category=kind.category,
                label=name,
                source=device.driver,
                value=value,
                unit=kind.unit,
            )

    def _resolve_name(
        self, device: HwmonDevice, kind: SensorKind, channel: str, index: int
    ) -> str:
        label = self.overrides.label_for(device.driver, channel)
        if label is not None:
            return label
        if kind.label_file is not None:
            contents = self.probe.read_text(os.path.join(device.path, kind.label_file % index))
            if contents is not None:
                return contents.strip()
        return channel
