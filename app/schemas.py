"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from models.records import SensorCategory, SensorReading
from services.aggregator import ScanResult


class SensorReadingOut(BaseModel):
    """One normalized reading as exposed over HTTP."""

    key: str = Field(..., description="Identity of the reading, source/label.")
    category: SensorCategory
    label: str
    source: str
    value: float
    unit: str

    @classmethod
    def from_reading(cls, reading: SensorReading) -> "SensorReadingOut":
        return cls(
            key=reading.key,
            category=reading.category,
            label=reading.label,
            source=reading.source,
            value=reading.value,
            unit=reading.unit,
        )


class ScanResponse(BaseModel):
    """Full result of one sensor scan."""

    scanned_at: Optional[datetime] = None
    scan_ms: int = Field(default=0, ge=0, description="Duration of the scan in milliseconds.")
    reading_count: int = Field(..., ge=0)
    readings: List[SensorReadingOut] = Field(default_factory=list)
    intervals: Dict[str, int] = Field(
        default_factory=dict, description="Refresh interval in milliseconds per reading key."
    )

    @classmethod
    def from_result(cls, result: ScanResult) -> "ScanResponse":
        return cls(
            scanned_at=result.scanned_at,
            scan_ms=result.scan_ms,
            reading_count=len(result.readings),
            readings=[SensorReadingOut.from_reading(reading) for reading in result.readings],
            intervals=dict(result.intervals),
        )
