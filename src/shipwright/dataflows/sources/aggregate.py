"""Aggregate source: concatenates child sources strictly in order."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from shipwright.core.cancellation import CancellationToken
from shipwright.core.errors import InvalidArgumentError
from shipwright.dataflows.sources.base import Source, SourceHandler
from shipwright.validation import rules
from shipwright.validation.results import ValidationFailure

if TYPE_CHECKING:
    from shipwright.dataflows.dataflow import Dataflow
    from shipwright.dataflows.record import Record
    from shipwright.dataflows.sources.dispatcher import SourceDispatcher


@dataclass(frozen=True)
class AggregateSource(Source):
    """Ordered collection of child sources read one after another."""

    sources: tuple[Source, ...] = ()


class AggregateSourceValidator:
    def validate(self, source: AggregateSource) -> list[ValidationFailure]:
        return [
            *rules.not_empty("sources", source.sources),
            *rules.no_none_items("sources", source.sources),
        ]


class AggregateSourceHandler(SourceHandler[AggregateSource]):
    """Reads every child to exhaustion before starting the next.

    Children are never interleaved or read concurrently, so a fixed
    configuration always produces the same record order.
    """

    def __init__(self, dispatcher: SourceDispatcher):
        if dispatcher is None:
            raise InvalidArgumentError("dispatcher")
        self._dispatcher = dispatcher

    async def read(
        self, source: AggregateSource, dataflow: Dataflow, token: CancellationToken
    ) -> AsyncIterator[Record]:
        for child in tuple(source.sources):
            async for record in self._dispatcher.read(child, dataflow, token):
                yield record


__all__ = ["AggregateSource", "AggregateSourceHandler", "AggregateSourceValidator"]
