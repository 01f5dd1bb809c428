"""
Database query source.

Executes one SQL statement and yields a record per result row. The
connection factory is obtained by dispatching
:class:`~shipwright.databases.BuildConnectionFactory`, so the connection info
is validated and the factory shared with every other reader of the same
database.

Blocking DB-API calls run in worker threads (``asyncio.to_thread``) and rows
are fetched in batches of ``fetch_size``.

Tags:
    dataflows, sources, database, sql
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from shipwright.commands.dispatcher import CommandDispatcher
from shipwright.core.cancellation import CancellationToken
from shipwright.core.errors import InvalidArgumentError
from shipwright.databases.connection import BuildConnectionFactory, DbConnectionInfo
from shipwright.dataflows.record import LogEvent, LogLevel, Record
from shipwright.dataflows.sources.base import Source, SourceHandler
from shipwright.validation import rules
from shipwright.validation.results import ValidationFailure

if TYPE_CHECKING:
    from shipwright.dataflows.dataflow import Dataflow


@dataclass(frozen=True)
class DbSource(Source):
    """Rows returned by a SQL query.

    ``output`` maps record fields to result columns as ``(field, column)``
    pairs; when empty, every column becomes a field of the same name.
    """

    connection_info: DbConnectionInfo | None = None
    sql: str = ""
    parameters: tuple[Any, ...] | Mapping[str, Any] = ()
    output: tuple[tuple[str, str], ...] = ()
    fetch_size: int | None = field(default=None, compare=False)


class DbSourceValidator:
    def validate(self, source: DbSource) -> list[ValidationFailure]:
        return [
            *rules.not_none("connection_info", source.connection_info),
            *rules.not_blank("sql", source.sql),
            *rules.defined_pairs("output", source.output),
            *rules.optional_at_least("fetch_size", source.fetch_size, 1),
        ]


def _execute(connection: Any, sql: str, parameters: Any) -> Any:
    cursor = connection.cursor()
    cursor.execute(sql, parameters)
    return cursor


class DbSourceHandler(SourceHandler[DbSource]):
    def __init__(self, commands: CommandDispatcher, fetch_size: int = 500):
        if commands is None:
            raise InvalidArgumentError("commands")
        self._commands = commands
        self._fetch_size = fetch_size

    def _output_columns(
        self, source: DbSource, columns: list[str], dataflow: Dataflow
    ) -> list[tuple[str, int]]:
        if not source.output:
            return [(name, ordinal) for ordinal, name in enumerate(columns)]

        ordinals = {name: ordinal for ordinal, name in enumerate(columns)}
        mapped = []
        for field_name, column in source.output:
            if column in ordinals:
                mapped.append((field_name, ordinals[column]))
            else:
                dataflow.events.append(
                    LogEvent(
                        description="Output column is missing from the query result",
                        level=LogLevel.WARNING,
                        is_fatal=False,
                        value={"field": field_name, "column": column},
                    )
                )
        return mapped

    async def read(
        self, source: DbSource, dataflow: Dataflow, token: CancellationToken
    ) -> AsyncIterator[Record]:
        factory = await self._commands.execute(
            BuildConnectionFactory(source.connection_info), token
        )
        fetch_size = source.fetch_size or self._fetch_size

        connection = await asyncio.to_thread(factory.create)
        try:
            cursor = await asyncio.to_thread(_execute, connection, source.sql, source.parameters)
            columns = [column[0] for column in cursor.description or ()]
            mapping = self._output_columns(source, columns, dataflow)

            position = 0
            while True:
                rows = await asyncio.to_thread(cursor.fetchmany, fetch_size)
                if not rows:
                    break
                for row in rows:
                    position += 1
                    data = {field_name: row[ordinal] for field_name, ordinal in mapping}
                    yield Record(dataflow, source, data, position)
        finally:
            await asyncio.to_thread(connection.close)


__all__ = ["DbSource", "DbSourceHandler", "DbSourceValidator"]
