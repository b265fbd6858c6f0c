"""Disk temperatures from a local hddtemp daemon.

The daemon writes one response on connect and expects no request. Each
record looks like ``|/dev/sda|MODEL|37|C|``.
"""

from __future__ import annotations

import logging
import socket
from typing import List

from models.records import Emit, SensorCategory, SensorReading

logger = logging.getLogger(__name__)

_BUFFER_SIZE = 1024


def _display_unit(unit_code: str) -> str:
    # Reproduces the long-standing mapping of the hddtemp reader: a "C"
    # code is shown as Fahrenheit and anything else as Celsius.
    return "°F" if unit_code == "C" else "°C"


def parse_hddtemp_response(response: str, source: str = "hddtemp") -> List[SensorReading]:
    if not response.startswith("|/"):
        return []

    readings: List[SensorReading] = []
    for record in response.split("\n"):
        fields = record[1:].split("|")
        if len(fields) < 4:
            continue
        device, model, temperature, unit_code = fields[:4]
        try:
            value = int(temperature.strip())
        except ValueError:
            logger.debug(
                "Skipping hddtemp record without a temperature",
                extra={"path": device, "reason": temperature},
            )
            continue
        readings.append(
            SensorReading(
                category=SensorCategory.hard_drive,
                label=model,
                source=source,
                value=float(value),
                unit=_display_unit(unit_code),
            )
        )
    return readings


class HddtempBackend:
    name = "hddtemp"
    source = "hddtemp"

    def __init__(self, host: str = "127.0.0.1", port: int = 7634, timeout: float = 2.0) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout

    def fetch(self) -> str:
        """Read the daemon's response, or return ``""`` if it is unavailable."""
        try:
            connection = socket.create_connection((self.host, self.port), timeout=self.timeout)
        except OSError as exc:
            logger.debug(
                "hddtemp daemon unavailable",
                extra={"backend": self.name, "reason": exc.strerror or str(exc)},
            )
            return ""

        with connection:
            try:
                data = connection.recv(_BUFFER_SIZE)
            except socket.timeout:
                logger.warning(
                    "hddtemp daemon did not answer in time",
                    extra={"backend": self.name, "reason": f"timeout={self.timeout}s"},
                )
                return ""
            except OSError as exc:
                logger.debug("hddtemp read failed", extra={"backend": self.name, "reason": str(exc)})
                return ""
        return data.decode("utf-8", errors="replace")

    def scan(self, emit: Emit) -> None:
        for reading in parse_hddtemp_response(self.fetch(), source=self.source):
            emit(reading)
