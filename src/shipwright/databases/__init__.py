"""Database connection contracts and built-in drivers."""

from shipwright.databases.connection import (
    BuildConnectionFactory,
    BuildConnectionFactoryHandler,
    BuildConnectionFactoryValidator,
    DbConnectionBuilder,
    DbConnectionFactory,
    DbConnectionInfo,
)
from shipwright.databases.sqlite import (
    SqliteConnectionBuilder,
    SqliteConnectionFactory,
    SqliteConnectionInfo,
    SqliteConnectionInfoValidator,
)

__all__ = [
    "BuildConnectionFactory",
    "BuildConnectionFactoryHandler",
    "BuildConnectionFactoryValidator",
    "DbConnectionBuilder",
    "DbConnectionFactory",
    "DbConnectionInfo",
    "SqliteConnectionBuilder",
    "SqliteConnectionFactory",
    "SqliteConnectionInfo",
    "SqliteConnectionInfoValidator",
]
