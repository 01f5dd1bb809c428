"""
Lazily wired registry container.

:class:`ShipwrightContainer` owns the validator registry and the three
dispatchers, creates each on first access, and registers every built-in
validator, command handler, source handler and transformation factory.

Usage::

    from shipwright.container import ShipwrightContainer

    container = ShipwrightContainer()
    dataflow = container.dataflow(
        "orders",
        sources=(CsvSource(path="orders.csv"),),
        transformations=(RequiredValue(fields=("order_id",)),),
    )
    await container.run(dataflow)

Registries are populated here, at start-up, and only read while
dispatching. Register custom types on the exposed registries before the
first run.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from shipwright.commands.dispatcher import CommandDispatcher
from shipwright.core.cancellation import CancellationToken
from shipwright.core.logging import configure_logging
from shipwright.core.settings import ShipwrightSettings, get_settings
from shipwright.databases.connection import (
    BuildConnectionFactory,
    BuildConnectionFactoryHandler,
    BuildConnectionFactoryValidator,
)
from shipwright.databases.sqlite import (
    SqliteConnectionBuilder,
    SqliteConnectionInfo,
    SqliteConnectionInfoValidator,
)
from shipwright.dataflows.dataflow import Dataflow, DataflowHandler, DataflowValidator
from shipwright.dataflows.notifications import NotificationReceiver
from shipwright.dataflows.sources import (
    AggregateSource,
    AggregateSourceHandler,
    AggregateSourceValidator,
    CsvSource,
    CsvSourceHandler,
    DbSource,
    DbSourceHandler,
    DbSourceValidator,
    Source,
    SourceDispatcher,
    csv_source_validator,
)
from shipwright.dataflows.transformations import (
    AggregateTransformation,
    AggregateTransformationFactory,
    AggregateTransformationValidator,
    Code,
    CodeFactory,
    CodeValidator,
    Conversion,
    ConversionFactory,
    ConversionValidator,
    DbLookup,
    DbLookupFactory,
    DbLookupValidator,
    DefaultValue,
    DefaultValueFactory,
    DefaultValueValidator,
    RequiredValue,
    RequiredValueFactory,
    RequiredValueValidator,
    Transformation,
    TransformationDispatcher,
)
from shipwright.validation.adapter import ValidatorRegistry


class ShipwrightContainer:
    """Lazy-initialised registries and dispatchers.

    Args:
        settings: Runtime settings; defaults to :func:`get_settings`.
        notification_receivers: Receivers notified for every dataflow run.
    """

    def __init__(
        self,
        settings: ShipwrightSettings | None = None,
        notification_receivers: Sequence[NotificationReceiver] = (),
    ) -> None:
        self._settings = settings
        self._receivers = tuple(notification_receivers)
        self._validators: ValidatorRegistry | None = None
        self._commands: CommandDispatcher | None = None
        self._sources: SourceDispatcher | None = None
        self._transformations: TransformationDispatcher | None = None
        self._connection_factories: BuildConnectionFactoryHandler | None = None

    # ── Properties (lazy) ────────────────────────────────────────

    @property
    def settings(self) -> ShipwrightSettings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def validators(self) -> ValidatorRegistry:
        if self._validators is None:
            self._validators = ValidatorRegistry()
            self._register_validators(self._validators)
        return self._validators

    @property
    def connection_factories(self) -> BuildConnectionFactoryHandler:
        """Handler for :class:`BuildConnectionFactory`; register builders here."""
        if self._connection_factories is None:
            self._connection_factories = BuildConnectionFactoryHandler(self.validators)
            self._connection_factories.register(SqliteConnectionInfo, SqliteConnectionBuilder())
        return self._connection_factories

    @property
    def commands(self) -> CommandDispatcher:
        if self._commands is None:
            self._commands = CommandDispatcher(self.validators)
            self._commands.register(BuildConnectionFactory, self.connection_factories)
            self._commands.register(
                Dataflow, DataflowHandler(self.sources, self.transformations, self._receivers)
            )
        return self._commands

    @property
    def sources(self) -> SourceDispatcher:
        if self._sources is None:
            self._sources = SourceDispatcher(self.validators)
            self._sources.register(AggregateSource, AggregateSourceHandler(self._sources))
            self._sources.register(CsvSource, CsvSourceHandler())
            self._sources.register(
                DbSource, DbSourceHandler(self.commands, fetch_size=self.settings.db_fetch_size)
            )
        return self._sources

    @property
    def transformations(self) -> TransformationDispatcher:
        if self._transformations is None:
            self._transformations = TransformationDispatcher(self.validators)
            dispatcher = self._transformations
            dispatcher.register(AggregateTransformation, AggregateTransformationFactory(dispatcher))
            dispatcher.register(Code, CodeFactory())
            dispatcher.register(Conversion, ConversionFactory())
            dispatcher.register(DbLookup, DbLookupFactory(self.commands))
            dispatcher.register(DefaultValue, DefaultValueFactory())
            dispatcher.register(RequiredValue, RequiredValueFactory())
        return self._transformations

    # ── Registration ─────────────────────────────────────────────

    @staticmethod
    def _register_validators(validators: ValidatorRegistry) -> None:
        validators.register(Dataflow, DataflowValidator())
        validators.register(BuildConnectionFactory, BuildConnectionFactoryValidator())
        validators.register(SqliteConnectionInfo, SqliteConnectionInfoValidator())
        validators.register(AggregateSource, AggregateSourceValidator())
        validators.register(CsvSource, csv_source_validator())
        validators.register(DbSource, DbSourceValidator())
        validators.register(AggregateTransformation, AggregateTransformationValidator())
        validators.register(Code, CodeValidator())
        validators.register(Conversion, ConversionValidator())
        validators.register(DbLookup, DbLookupValidator())
        validators.register(DefaultValue, DefaultValueValidator())
        validators.register(RequiredValue, RequiredValueValidator())

    # ── Convenience ──────────────────────────────────────────────

    def configure_logging(self) -> None:
        """Configure structlog from the container's settings."""
        configure_logging(
            level=self.settings.log_level,
            json_format=self.settings.log_format == "json",
            service=self.settings.service_name,
        )

    def dataflow(
        self,
        name: str,
        sources: Sequence[Source],
        transformations: Sequence[Transformation],
        **options: Any,
    ) -> Dataflow:
        """Build a :class:`Dataflow` with defaults taken from settings."""
        options.setdefault("max_degree_of_parallelism", self.settings.max_degree_of_parallelism)
        options.setdefault("buffer_size", self.settings.buffer_size)
        options.setdefault("case_sensitive_fields", self.settings.case_sensitive_fields)
        return Dataflow(
            name=name,
            sources=tuple(sources),
            transformations=tuple(transformations),
            **options,
        )

    async def run(self, dataflow: Dataflow, token: CancellationToken | None = None) -> None:
        """Execute ``dataflow`` through the command dispatcher."""
        await self.commands.execute(dataflow, token)


__all__ = ["ShipwrightContainer"]
