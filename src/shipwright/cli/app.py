"""
Root Typer application for the shipwright CLI.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from typer import Typer

from shipwright.cli.utils import RecordCollector, fail, output_events, output_records
from shipwright.container import ShipwrightContainer
from shipwright.core.errors import ShipwrightError
from shipwright.core.settings import get_settings
from shipwright.dataflows.dataflow import Dataflow
from shipwright.dataflows.record import Record
from shipwright.dataflows.sources import CsvSource
from shipwright.fizzbuzz import fizzbuzz_dataflow, register_fizzbuzz

app = Typer(
    name="shipwright",
    help="shipwright - composable record dataflows.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("shipwright-dataflow")
        except PackageNotFoundError:
            v = "unknown"
        typer.echo(f"shipwright {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Override SHIPWRIGHT_LOG_LEVEL for this invocation."
    ),
) -> None:
    """shipwright CLI - preview sources and run demonstration dataflows."""
    settings = get_settings()
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level.upper()})
    ShipwrightContainer(settings).configure_logging()


# ── Commands ─────────────────────────────────────────────────────────────


async def _read(container: ShipwrightContainer, dataflow: Dataflow, limit: int) -> list[Record]:
    records: list[Record] = []
    stream = container.sources.read(dataflow.sources[0], dataflow)
    async for record in stream:
        records.append(record)
        if len(records) >= limit:
            break
    await stream.aclose()
    return records


@app.command("preview")
def preview(
    path: Path = typer.Argument(..., help="CSV file to read."),
    delimiter: str = typer.Option(",", "--delimiter", "-d", help="Field delimiter."),
    encoding: str = typer.Option("utf-8", "--encoding", help="File encoding."),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Maximum records to show."),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Read the first records of a CSV file and show them."""
    container = ShipwrightContainer()
    source = CsvSource(path=path, delimiter=delimiter, encoding=encoding)
    dataflow = container.dataflow("preview", sources=(source,), transformations=())

    try:
        records = asyncio.run(_read(container, dataflow, limit))
    except ShipwrightError as e:
        output_events(dataflow.events)
        fail(e)

    output_records(records, as_json=as_json, title=str(path))


@app.command("fizzbuzz")
def fizzbuzz(
    records: int = typer.Option(100, "--records", "-n", help="Number of values to count."),
    fizz: int = typer.Option(3, "--fizz", help="Fizz divisor."),
    buzz: int = typer.Option(5, "--buzz", help="Buzz divisor."),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Run the FizzBuzz demonstration dataflow."""
    collector = RecordCollector()
    container = ShipwrightContainer(notification_receivers=(collector,))
    register_fizzbuzz(container)

    try:
        asyncio.run(container.run(fizzbuzz_dataflow(records=records, fizz=fizz, buzz=buzz)))
    except ShipwrightError as e:
        fail(e)

    output_records(collector.records, as_json=as_json, title="FizzBuzz")
