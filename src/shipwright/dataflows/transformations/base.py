"""
Transformation definitions, handlers and factories.

A :class:`Transformation` is an immutable description of per-record work.
Its :class:`TransformationFactory` builds a :class:`TransformationHandler`
once per dataflow run; the handler transforms records one at a time and
is torn down with :meth:`~TransformationHandler.aclose` when the run ends.

Examples:
    >>> handler = await dispatcher.create(RequiredValue(fields=("id",)), token)
    >>> async with handler:
    ...     await handler.transform(record, token)

Tags:
    dataflows, transformations, handlers, factories
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from shipwright.core.cancellation import CancellationToken
from shipwright.validation.adapter import RequiresValidation

if TYPE_CHECKING:
    from shipwright.dataflows.record import Record


@dataclass(frozen=True)
class Transformation(RequiresValidation):
    """Base class for transformation definitions.

    ``max_degree_of_parallelism`` limits how many records the built handler
    transforms at the same time; ``None`` means unlimited.
    """

    max_degree_of_parallelism: int | None = field(default=None, kw_only=True)


TTransformation = TypeVar("TTransformation", bound=Transformation)


class TransformationHandler(ABC):
    """Transforms records in place; owns whatever resources it acquired."""

    @abstractmethod
    async def transform(self, record: Record, token: CancellationToken) -> None:
        """Mutate ``record`` or append events to it."""

    async def aclose(self) -> None:
        """Release resources. The default handler owns none."""

    async def __aenter__(self) -> TransformationHandler:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class TransformationFactory(ABC, Generic[TTransformation]):
    """Builds handlers for one exact transformation type."""

    @abstractmethod
    async def create(
        self, transformation: TTransformation, token: CancellationToken
    ) -> TransformationHandler:
        """Build a handler for ``transformation``."""


__all__ = [
    "TTransformation",
    "Transformation",
    "TransformationFactory",
    "TransformationHandler",
]
