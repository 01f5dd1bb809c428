"""
Source Dispatcher - resolves a source definition to its reader.

Architecture:
    ::

        SourceDispatcher
          ├── .register(source_type, handler)   wrap + store
          ├── .read(source, dataflow, token)    → AsyncIterator[Record]
          ├── .has(source_type)
          └── .list_handlers()

        registered chain:
          CancellationSourceDecorator → ValidationSourceDecorator → handler

Guardrails:
    - ``read`` checks its arguments and resolves the handler eagerly, so a
      ``None`` argument or a missing handler fails before any reading.
    - Lookup is by exact source type.

Tags:
    dataflows, sources, dispatcher, shipwright-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from shipwright.core.cancellation import CancellationToken, ensure_token
from shipwright.core.errors import InvalidArgumentError, MissingHandlerError
from shipwright.core.logging import get_logger
from shipwright.dataflows.sources.base import Source, SourceHandler
from shipwright.dataflows.sources.decorators import (
    CancellationSourceDecorator,
    ValidationSourceDecorator,
)
from shipwright.validation.adapter import ValidatorRegistry

if TYPE_CHECKING:
    from shipwright.dataflows.dataflow import Dataflow
    from shipwright.dataflows.record import Record

log = get_logger(__name__)


class SourceDispatcher:
    """Reads any registered source type."""

    def __init__(self, validators: ValidatorRegistry):
        if validators is None:
            raise InvalidArgumentError("validators")
        self._validators = validators
        self._handlers: dict[type, SourceHandler] = {}

    def register(self, source_type: type[Source], handler: SourceHandler) -> None:
        if source_type is None:
            raise InvalidArgumentError("source_type")
        if handler is None:
            raise InvalidArgumentError("handler")
        self._handlers[source_type] = CancellationSourceDecorator(
            ValidationSourceDecorator(handler, self._validators, source_type)
        )

    def has(self, source_type: type[Source]) -> bool:
        return source_type in self._handlers

    def list_handlers(self) -> list[str]:
        return sorted(f"SourceHandler[{t.__qualname__}]" for t in self._handlers)

    def read(
        self,
        source: Source,
        dataflow: Dataflow,
        token: CancellationToken | None = None,
    ) -> AsyncIterator[Record]:
        """Return the lazy record stream of ``source``.

        Raises:
            InvalidArgumentError: If ``source`` or ``dataflow`` is ``None``.
            MissingHandlerError: If no handler is registered for the type.
        """
        if source is None:
            raise InvalidArgumentError("source")
        if dataflow is None:
            raise InvalidArgumentError("dataflow")

        source_type = type(source)
        handler = self._handlers.get(source_type)
        if handler is None:
            raise MissingHandlerError(f"SourceHandler[{source_type.__qualname__}]")

        log.debug("source.read", source_type=source_type.__qualname__, dataflow=dataflow.name)
        return handler.read(source, dataflow, ensure_token(token))


__all__ = ["SourceDispatcher"]
