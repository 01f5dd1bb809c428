"""Source definitions and the source reader contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Generic, TypeVar

from shipwright.core.cancellation import CancellationToken
from shipwright.validation.adapter import RequiresValidation

if TYPE_CHECKING:
    from shipwright.dataflows.dataflow import Dataflow
    from shipwright.dataflows.record import Record


class Source(RequiresValidation):
    """Base class for record source definitions.

    Sources are immutable configuration values (frozen dataclasses); the
    reading behaviour lives in the :class:`SourceHandler` registered for the
    concrete type.
    """

    __slots__ = ()


TSource = TypeVar("TSource", bound=Source)


class SourceHandler(ABC, Generic[TSource]):
    """Reads records for one exact source type.

    ``read`` is an async generator: records are produced incrementally, for
    a single consumer, and the sequence is not restartable.
    """

    @abstractmethod
    def read(
        self, source: TSource, dataflow: Dataflow, token: CancellationToken
    ) -> AsyncIterator[Record]:
        """Yield the records of ``source`` in source order."""


__all__ = ["Source", "SourceHandler", "TSource"]
