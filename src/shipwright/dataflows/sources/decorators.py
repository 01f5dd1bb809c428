"""Source reader decorators applied at registration.

Outermost first::

    CancellationSourceDecorator → ValidationSourceDecorator → handler

Cancellation is observed before the first record is read and again after
each record the consumer receives.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from shipwright.core.cancellation import CancellationToken
from shipwright.dataflows.sources.base import Source, SourceHandler
from shipwright.validation.adapter import ValidatorRegistry

if TYPE_CHECKING:
    from shipwright.dataflows.dataflow import Dataflow
    from shipwright.dataflows.record import Record


class CancellationSourceDecorator(SourceHandler[Source]):
    def __init__(self, inner: SourceHandler):
        self.inner = inner

    async def read(
        self, source: Source, dataflow: Dataflow, token: CancellationToken
    ) -> AsyncIterator[Record]:
        token.raise_if_cancelled()
        async for record in self.inner.read(source, dataflow, token):
            yield record
            token.raise_if_cancelled()


class ValidationSourceDecorator(SourceHandler[Source]):
    def __init__(self, inner: SourceHandler, validators: ValidatorRegistry, source_type: type):
        self.inner = inner
        self._validators = validators
        self._source_type = source_type

    async def read(
        self, source: Source, dataflow: Dataflow, token: CancellationToken
    ) -> AsyncIterator[Record]:
        await self._validators.adapter(self._source_type).validate_and_raise(source)
        async for record in self.inner.read(source, dataflow, token):
            yield record


__all__ = ["CancellationSourceDecorator", "ValidationSourceDecorator"]
