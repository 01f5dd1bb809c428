"""
CSV file source.

Reads delimited text files with the standard library ``csv`` module. The
first row is the header unless ``fieldnames`` is given; columns without a
usable header are named ``Field_{index}``. Empty cells become ``None``.

Examples:
    >>> source = CsvSource(path="data/orders.csv", delimiter=";")
    >>> async for record in dispatcher.read(source, dataflow, token):
    ...     print(record.data["order_id"])

Guardrails:
    - A missing file is reported on ``dataflow.events`` and raised as
      :class:`SourceNotFoundError` unless ``throw_on_file_not_found`` is
      false, in which case the source yields nothing.
    - Duplicate header names raise :class:`SourceError`.

Tags:
    dataflows, sources, csv, file
"""

from __future__ import annotations

import csv
import os
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shipwright.core.cancellation import CancellationToken
from shipwright.core.errors import SourceError, SourceNotFoundError
from shipwright.dataflows.record import LogEvent, LogLevel, Record
from shipwright.dataflows.sources.base import Source, SourceHandler
from shipwright.validation.schema import SchemaValidator

if TYPE_CHECKING:
    from shipwright.dataflows.dataflow import Dataflow


@dataclass(frozen=True)
class CsvSource(Source):
    """Delimited text file."""

    path: str | Path = ""
    delimiter: str = ","
    encoding: str = "utf-8"
    fieldnames: tuple[str, ...] | None = None
    throw_on_file_not_found: bool = True


class _CsvSourceSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    delimiter: str = Field(min_length=1, max_length=1)
    encoding: str

    @field_validator("path", "encoding")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


def _csv_source_fields(source: CsvSource) -> dict[str, Any]:
    path = source.path
    return {
        "path": os.fspath(path) if isinstance(path, Path) else path,
        "delimiter": source.delimiter,
        "encoding": source.encoding,
    }


def csv_source_validator() -> SchemaValidator:
    return SchemaValidator(_CsvSourceSchema, extract=_csv_source_fields)


def _field_names(header: Sequence[str] | None, width: int) -> list[str]:
    names = []
    for index in range(width):
        name = header[index] if header is not None and index < len(header) else None
        names.append(name if name and name.strip() else f"Field_{index}")
    return names


class CsvSourceHandler(SourceHandler[CsvSource]):
    async def read(
        self, source: CsvSource, dataflow: Dataflow, token: CancellationToken
    ) -> AsyncIterator[Record]:
        path = Path(source.path)
        try:
            handle = path.open(newline="", encoding=source.encoding)
        except FileNotFoundError as e:
            dataflow.events.append(
                LogEvent(
                    description=f"Source file not found: {path}",
                    level=LogLevel.ERROR,
                    is_fatal=True,
                    value={"path": str(path)},
                )
            )
            if source.throw_on_file_not_found:
                raise SourceNotFoundError(f"File not found: {path}", cause=e).with_context(
                    source_type="CsvSource", path=str(path)
                ) from e
            return

        with handle:
            reader = csv.reader(handle, delimiter=source.delimiter)
            header: Sequence[str] | None = source.fieldnames
            if header is None:
                header = next(reader, None)
                if header is None:
                    return

            position = 0
            for row in reader:
                names = _field_names(header, len(row))
                data: dict[str, Any] = {}
                record_fields = dataflow.new_field_map()
                for name, value in zip(names, row):
                    if name in record_fields:
                        raise SourceError(f"Duplicate header name: {name}").with_context(
                            source_type="CsvSource", path=str(path), line=reader.line_num
                        )
                    record_fields[name] = None
                    data[name] = value if value != "" else None

                position += 1
                yield Record(dataflow, source, data, position)


__all__ = ["CsvSource", "CsvSourceHandler", "csv_source_validator"]
