"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol


class SensorCategory(str, Enum):
    """Kinds of quantity a reading can report; values are display names."""

    fan = "Fan"
    temperature = "Temperature"
    voltage = "Voltage"
    current = "Current"
    power = "Power"
    hard_drive = "Hard Drive"


@dataclass(frozen=True, slots=True)
class SensorReading:
    """One normalized sensor value as emitted by a backend."""

    category: SensorCategory
    label: str
    source: str
    value: float
    unit: str

    @property
    def key(self) -> str:
        return f"{self.source}/{self.label}"

    def render(self) -> str:
        return f"{self.key}={self.value:.2f}{self.unit}|{self.category.value}"


Emit = Callable[[SensorReading], None]


class SensorBackend(Protocol):
    """A source of readings; it must never raise for missing data."""

    name: str

    def scan(self, emit: Emit) -> None:
        ...
