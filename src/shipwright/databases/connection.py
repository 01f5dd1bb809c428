"""
Database connection contracts and the connection factory command.

Manifesto:
    Sources and transformations that talk to a database describe *which*
    database with an immutable :class:`DbConnectionInfo` and obtain a
    :class:`DbConnectionFactory` by dispatching
    :class:`BuildConnectionFactory`. Building a factory can be expensive
    (driver loading, DSN resolution), so the handler memoizes one factory
    per connection info for the lifetime of the process.

Architecture:
    ::

        BuildConnectionFactory(connection_info)      Command[DbConnectionFactory]
              │  dispatched through CommandDispatcher
              ▼
        BuildConnectionFactoryHandler
          ├── validate connection_info (exact-type validators)
          ├── resolve DbConnectionBuilder for type(connection_info)
          └── AsyncCache[connection_info → DbConnectionFactory]

        DbConnectionFactory.create() → DB-API 2.0 connection

Tags:
    databases, connections, commands, caching

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from shipwright.commands.command import Command
from shipwright.commands.handler import CommandHandler
from shipwright.core.cache import AsyncCache
from shipwright.core.cancellation import CancellationToken
from shipwright.core.errors import InvalidArgumentError, MissingHandlerError
from shipwright.core.logging import get_logger
from shipwright.validation import rules
from shipwright.validation.adapter import RequiresValidation, ValidatorRegistry
from shipwright.validation.results import ValidationFailure

log = get_logger(__name__)


class DbConnectionInfo(RequiresValidation):
    """Base class for immutable, hashable database connection descriptions."""

    __slots__ = ()


TInfo = TypeVar("TInfo", bound=DbConnectionInfo)


@runtime_checkable
class DbConnectionFactory(Protocol):
    """Opens new DB-API 2.0 connections. Callers own and close them."""

    def create(self) -> Any: ...


class DbConnectionBuilder(ABC, Generic[TInfo]):
    """Builds connection factories for one exact connection info type."""

    @abstractmethod
    async def build(self, connection_info: TInfo, token: CancellationToken) -> DbConnectionFactory:
        """Return a factory for ``connection_info``."""


@dataclass(frozen=True)
class BuildConnectionFactory(Command[DbConnectionFactory]):
    """Obtain the connection factory for a database."""

    connection_info: DbConnectionInfo | None = None


class BuildConnectionFactoryValidator:
    def validate(self, command: BuildConnectionFactory) -> list[ValidationFailure]:
        return rules.not_none("connection_info", command.connection_info)


class BuildConnectionFactoryHandler(CommandHandler[BuildConnectionFactory, DbConnectionFactory]):
    """Validates the connection info and returns a memoized factory."""

    def __init__(self, validators: ValidatorRegistry):
        if validators is None:
            raise InvalidArgumentError("validators")
        self._validators = validators
        self._builders: dict[type, DbConnectionBuilder] = {}
        self._factories: AsyncCache[DbConnectionInfo, DbConnectionFactory] = AsyncCache()

    def register(self, info_type: type[DbConnectionInfo], builder: DbConnectionBuilder) -> None:
        if info_type is None:
            raise InvalidArgumentError("info_type")
        if builder is None:
            raise InvalidArgumentError("builder")
        self._builders[info_type] = builder

    def list_builders(self) -> list[str]:
        return sorted(f"DbConnectionBuilder[{t.__qualname__}]" for t in self._builders)

    async def execute(
        self, command: BuildConnectionFactory, token: CancellationToken
    ) -> DbConnectionFactory:
        info = command.connection_info
        info_type = type(info)
        builder = self._builders.get(info_type)
        if builder is None:
            raise MissingHandlerError(f"DbConnectionBuilder[{info_type.__qualname__}]")

        await self._validators.adapter(info_type).validate_and_raise(info)

        async def build(key: DbConnectionInfo) -> DbConnectionFactory:
            log.debug("database.factory.build", info_type=info_type.__qualname__)
            return await builder.build(key, token)

        return await self._factories.get_or_add(info, build)


__all__ = [
    "BuildConnectionFactory",
    "BuildConnectionFactoryHandler",
    "BuildConnectionFactoryValidator",
    "DbConnectionBuilder",
    "DbConnectionFactory",
    "DbConnectionInfo",
]
