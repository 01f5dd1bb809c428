"""SQLite connections via the standard library ``sqlite3`` driver."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from shipwright.core.cancellation import CancellationToken
from shipwright.core.errors import DatabaseError
from shipwright.databases.connection import DbConnectionBuilder, DbConnectionInfo
from shipwright.validation import rules
from shipwright.validation.results import ValidationFailure


@dataclass(frozen=True)
class SqliteConnectionInfo(DbConnectionInfo):
    """Path (or URI) of a SQLite database."""

    database: str = ""
    timeout: float = 5.0
    uri: bool = False


class SqliteConnectionInfoValidator:
    def validate(self, info: SqliteConnectionInfo) -> list[ValidationFailure]:
        failures = rules.not_blank("database", info.database)
        if info.timeout is None or info.timeout < 0:
            failures.append(ValidationFailure("timeout", "must not be negative"))
        return failures


class SqliteConnectionFactory:
    def __init__(self, info: SqliteConnectionInfo):
        self.info = info

    def create(self) -> sqlite3.Connection:
        try:
            # connections are handed between worker threads by the readers
            return sqlite3.connect(
                self.info.database,
                timeout=self.info.timeout,
                uri=self.info.uri,
                check_same_thread=False,
            )
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to open SQLite database: {e}", cause=e).with_context(
                database=self.info.database
            ) from e


class SqliteConnectionBuilder(DbConnectionBuilder[SqliteConnectionInfo]):
    async def build(
        self, connection_info: SqliteConnectionInfo, token: CancellationToken
    ) -> SqliteConnectionFactory:
        return SqliteConnectionFactory(connection_info)


__all__ = [
    "SqliteConnectionBuilder",
    "SqliteConnectionFactory",
    "SqliteConnectionInfo",
    "SqliteConnectionInfoValidator",
]
