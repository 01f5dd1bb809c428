"""
CLI utility helpers: output formatting and error reporting.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from shipwright.core.cancellation import CancellationToken
from shipwright.core.errors import ShipwrightError, ValidationFailedError
from shipwright.dataflows.record import Record

console = Console()
err_console = Console(stderr=True)


# ── Record collection ────────────────────────────────────────────────────


class RecordCollector:
    """Notification receiver that keeps every completed record."""

    def __init__(self) -> None:
        self.records: list[Record] = []

    async def dataflow_starting(self, dataflow: Any, token: CancellationToken) -> None:
        self.records.clear()

    async def record_completed(self, record: Record, token: CancellationToken) -> None:
        self.records.append(record)

    async def dataflow_completed(self, dataflow: Any, token: CancellationToken) -> None:
        self.records.sort(key=lambda r: r.position)


# ── Output helpers ───────────────────────────────────────────────────────


def _columns(records: Sequence[Record]) -> list[str]:
    columns: list[str] = []
    seen: set[str] = set()
    for record in records:
        for name in record.data:
            key = record.data.key(name)
            if key not in seen:
                seen.add(key)
                columns.append(name)
    return columns


def _fmt(value: Any) -> str:
    return "" if value is None else str(value)


def output_records(
    records: Sequence[Record],
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render records as a rich table or as JSON."""
    if as_json:
        payload = [
            {
                "position": r.position,
                "data": dict(r.data.items()),
                "events": [e.to_dict() for e in r.events],
            }
            for r in records
        ]
        console.print_json(json.dumps(payload, default=str))
        return

    if not records:
        console.print("[dim]No records.[/dim]")
        return

    columns = _columns(records)
    table = Table(title=title or None, show_lines=False)
    table.add_column("#", style="dim", justify="right")
    for column in columns:
        table.add_column(column)
    table.add_column("events", style="yellow")

    for record in records:
        row = [str(record.position)]
        row.extend(_fmt(record.data.get(column)) for column in columns)
        row.append("; ".join(event.description for event in record.events))
        table.add_row(*row)

    console.print(table)


def output_events(events: Iterable[Any], *, title: str = "Dataflow events") -> None:
    events = list(events)
    if not events:
        return
    err_console.print(f"[bold yellow]{title}[/bold yellow]")
    for event in events:
        marker = "[red]fatal[/red] " if event.is_fatal else ""
        err_console.print(f"  {marker}{event.level.value}: {event.description}")


def fail(error: ShipwrightError) -> NoReturn:
    """Print a Shipwright error and exit with status 1."""
    err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    if isinstance(error, ValidationFailedError):
        for failure in error.failures:
            err_console.print(f"  [red]•[/red] {failure.field}: {failure.message}")
    raise typer.Exit(code=1)
