"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from app.schemas import ScanResponse
from services.aggregator import SensorAggregator, build_default_aggregator

router = APIRouter()


def get_aggregator() -> SensorAggregator:
    return build_default_aggregator()


# Scans block on file and socket I/O, so these routes are plain functions
# and run in the threadpool.
@router.get(
    "/sensors",
    response_model=ScanResponse,
    summary="Scan every sensor source and return the readings.",
)
def scan_sensors(
    aggregator: SensorAggregator = Depends(get_aggregator),
) -> ScanResponse:
    return ScanResponse.from_result(aggregator.scan_all())


@router.get(
    "/sensors/latest",
    response_model=ScanResponse,
    summary="Return the last published scan without scanning again.",
)
async def latest_scan(
    aggregator: SensorAggregator = Depends(get_aggregator),
) -> ScanResponse:
    result = aggregator.published
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No sensor scan has been published yet.",
        )
    return ScanResponse.from_result(result)


@router.get(
    "/sensors/report",
    response_class=PlainTextResponse,
    summary="Scan and return the readings as report lines.",
)
def sensor_report(
    intervals: bool = Query(False, description="Append UpdateInterval lines."),
    aggregator: SensorAggregator = Depends(get_aggregator),
) -> PlainTextResponse:
    result = aggregator.scan_all()
    body = result.render()
    if intervals:
        body += result.render_intervals()
    return PlainTextResponse(body)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /sensors for the current readings."}
