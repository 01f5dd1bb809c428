"""
Aggregate transformation: an ordered chain of child transformations.

Build phase
    Children are built strictly in order. If building child *k* fails
    (including by cancellation), the handlers already built for children
    1..k-1 are torn down in build order and the original error propagates.
    A teardown failure during that cleanup is attached to the original
    error as a note rather than replacing it.

Run phase
    ``transform`` runs each child on the same record, in order, so later
    children see the changes of earlier ones. ``aclose`` tears down every
    child exactly once, even when an earlier teardown fails; a single
    failure is re-raised as is, several are raised together in an
    ``ExceptionGroup``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from shipwright.core.cancellation import CancellationToken
from shipwright.core.errors import InvalidArgumentError
from shipwright.dataflows.transformations.base import (
    Transformation,
    TransformationFactory,
    TransformationHandler,
)
from shipwright.validation import rules
from shipwright.validation.results import ValidationFailure

if TYPE_CHECKING:
    from shipwright.dataflows.record import Record
    from shipwright.dataflows.transformations.dispatcher import TransformationDispatcher


@dataclass(frozen=True)
class AggregateTransformation(Transformation):
    transformations: tuple[Transformation, ...] = ()


class AggregateTransformationValidator:
    def validate(self, transformation: AggregateTransformation) -> list[ValidationFailure]:
        return [
            *rules.not_empty("transformations", transformation.transformations),
            *rules.no_none_items("transformations", transformation.transformations),
        ]


class AggregateTransformationHandler(TransformationHandler):
    """Owns and runs an ordered list of child handlers."""

    def __init__(self, handlers: Sequence[TransformationHandler]):
        if handlers is None:
            raise InvalidArgumentError("handlers")
        self.handlers = tuple(handlers)

    async def transform(self, record: Record, token: CancellationToken) -> None:
        if record is None:
            raise InvalidArgumentError("record")
        for handler in self.handlers:
            await handler.transform(record, token)

    async def aclose(self) -> None:
        errors: list[Exception] = []
        for handler in self.handlers:
            try:
                await handler.aclose()
            except Exception as e:
                errors.append(e)

        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise ExceptionGroup("Multiple transformation handlers failed to close", errors)


class AggregateTransformationFactory(TransformationFactory[AggregateTransformation]):
    def __init__(self, dispatcher: TransformationDispatcher):
        if dispatcher is None:
            raise InvalidArgumentError("dispatcher")
        self._dispatcher = dispatcher

    async def create(
        self, transformation: AggregateTransformation, token: CancellationToken
    ) -> AggregateTransformationHandler:
        handlers: list[TransformationHandler] = []
        try:
            for child in transformation.transformations:
                handlers.append(await self._dispatcher.create(child, token))
        except BaseException as error:
            for handler in handlers:
                try:
                    await handler.aclose()
                except Exception as cleanup_error:
                    error.add_note(f"Teardown of {type(handler).__name__} also failed: {cleanup_error!r}")
            raise

        return AggregateTransformationHandler(handlers)


__all__ = [
    "AggregateTransformation",
    "AggregateTransformationFactory",
    "AggregateTransformationHandler",
    "AggregateTransformationValidator",
]
