"""
Database lookup transformation.

Runs a parameterised query for each record. When the query returns exactly
one row, the ``output`` columns are copied into the record; zero or several
rows append a :class:`LogEvent` instead.

With ``cache_results`` the handler keeps the rows of every distinct
parameter set in an :class:`~shipwright.core.cache.AsyncCache`, so
concurrent records with the same inputs share one query.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from shipwright.commands.dispatcher import CommandDispatcher
from shipwright.core.cache import AsyncCache
from shipwright.core.cancellation import CancellationToken
from shipwright.core.errors import InvalidArgumentError
from shipwright.databases.connection import (
    BuildConnectionFactory,
    DbConnectionFactory,
    DbConnectionInfo,
)
from shipwright.dataflows.record import LogEvent, LogLevel
from shipwright.dataflows.transformations.base import (
    Transformation,
    TransformationFactory,
    TransformationHandler,
)
from shipwright.validation import rules
from shipwright.validation.results import ValidationFailure

if TYPE_CHECKING:
    from shipwright.dataflows.record import Record

Row = dict[str, Any]


def match_count_description(count: int) -> str:
    return f"Lookup expected exactly one match but found {count}"


@dataclass(frozen=True)
class MatchEvent:
    """How a lookup that did not return exactly one row is reported."""

    is_fatal: bool = True
    level: LogLevel = LogLevel.ERROR
    description: Callable[[int], str] = match_count_description


@dataclass(frozen=True)
class DbLookup(Transformation):
    """Look up values for each record with a parameterised query.

    ``input`` maps record fields to named query parameters and ``output``
    maps record fields to result columns, both as ``(field, name)`` pairs.
    ``parameters`` holds extra named parameter values.
    """

    connection_info: DbConnectionInfo | None = None
    sql: str = ""
    input: tuple[tuple[str, str], ...] = ()
    output: tuple[tuple[str, str], ...] = ()
    parameters: tuple[tuple[str, Any], ...] = ()
    cache_results: bool = False
    zero_match_event: MatchEvent = field(default_factory=MatchEvent)
    multiple_match_event: MatchEvent = field(default_factory=MatchEvent)


class DbLookupValidator:
    def validate(self, transformation: DbLookup) -> list[ValidationFailure]:
        return [
            *rules.not_none("connection_info", transformation.connection_info),
            *rules.not_blank("sql", transformation.sql),
            *rules.defined_pairs("input", transformation.input),
            *rules.defined_pairs("output", transformation.output),
            *rules.not_none("zero_match_event", transformation.zero_match_event),
            *rules.not_none("multiple_match_event", transformation.multiple_match_event),
        ]


def _query(factory: DbConnectionFactory, sql: str, parameters: Mapping[str, Any]) -> list[Row]:
    connection = factory.create()
    try:
        cursor = connection.cursor()
        cursor.execute(sql, dict(parameters))
        columns = [column[0] for column in cursor.description or ()]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]
    finally:
        connection.close()


class DbLookupHandler(TransformationHandler):
    def __init__(self, transformation: DbLookup, connection_factory: DbConnectionFactory):
        if transformation is None:
            raise InvalidArgumentError("transformation")
        if connection_factory is None:
            raise InvalidArgumentError("connection_factory")
        self.transformation = transformation
        self.connection_factory = connection_factory

    def map_inputs(self, record: Record) -> dict[str, Any]:
        parameters = dict(self.transformation.parameters)
        for field_name, parameter in self.transformation.input:
            parameters[parameter] = record.data.get(field_name)
        return parameters

    async def get_matches(self, parameters: dict[str, Any]) -> list[Row]:
        return await asyncio.to_thread(
            _query, self.connection_factory, self.transformation.sql, parameters
        )

    def map_result(self, record: Record, row: Row) -> None:
        for field_name, column in self.transformation.output:
            if column in row:
                record.data[field_name] = row[column]

    async def transform(self, record: Record, token: CancellationToken) -> None:
        if record is None:
            raise InvalidArgumentError("record")
        parameters = self.map_inputs(record)
        matches = await self.get_matches(parameters)

        if len(matches) == 1:
            self.map_result(record, matches[0])
            return

        setting = (
            self.transformation.zero_match_event
            if not matches
            else self.transformation.multiple_match_event
        )
        record.events.append(
            LogEvent(
                description=setting.description(len(matches)),
                level=setting.level,
                is_fatal=setting.is_fatal,
                value=parameters,
            )
        )


class CachingDbLookupHandler(DbLookupHandler):
    """Memoizes query results per distinct parameter set."""

    def __init__(self, transformation: DbLookup, connection_factory: DbConnectionFactory):
        super().__init__(transformation, connection_factory)
        self._cache: AsyncCache[str, list[Row]] = AsyncCache()

    async def get_matches(self, parameters: dict[str, Any]) -> list[Row]:
        key = json.dumps(parameters, sort_keys=True, default=str)
        uncached = super().get_matches
        return await self._cache.get_or_add(key, lambda _: uncached(parameters))

    async def aclose(self) -> None:
        self._cache.clear()


class DbLookupFactory(TransformationFactory[DbLookup]):
    def __init__(self, commands: CommandDispatcher):
        if commands is None:
            raise InvalidArgumentError("commands")
        self._commands = commands

    async def create(self, transformation: DbLookup, token: CancellationToken) -> DbLookupHandler:
        connection_factory = await self._commands.execute(
            BuildConnectionFactory(transformation.connection_info), token
        )
        handler_type = CachingDbLookupHandler if transformation.cache_results else DbLookupHandler
        return handler_type(transformation, connection_factory)


__all__ = [
    "CachingDbLookupHandler",
    "DbLookup",
    "DbLookupFactory",
    "DbLookupHandler",
    "DbLookupValidator",
    "MatchEvent",
]
