from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_value(reading: Dict[str, Any]) -> str:
    value = reading.get("value")
    if isinstance(value, (int, float)):
        return f"{value:.2f}{reading.get('unit', '')}"
    return "n/a"


def render_scan(payload: Dict[str, Any]) -> None:
    """Print a scan payload grouped by sensor category."""
    echo_heading("Sensor Scan")
    echo_key_values(
        [
            ("scanned_at", payload.get("scanned_at")),
            ("scan_ms", payload.get("scan_ms")),
            ("reading_count", payload.get("reading_count")),
        ]
    )

    readings = payload.get("readings") or []
    if not readings:
        typer.echo()
        typer.echo("No sensors found.")
        return

    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for reading in readings:
        grouped.setdefault(reading.get("category") or "Unknown", []).append(reading)

    for category, items in grouped.items():
        typer.echo()
        echo_heading(category)
        for reading in items:
            typer.echo(
                f"  - {reading.get('source')}/{reading.get('label')}: {_format_value(reading)}"
            )
