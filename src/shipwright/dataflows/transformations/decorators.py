"""
Transformation factory and handler decorators.

WHY
───
Every transformation needs the same treatment around it: no work on a
record that already carries a fatal event, a concurrency limit when the
definition asks for one, and a cancellation check before each build and
each record. Applying these once, at registration, keeps individual
factories and handlers free of that plumbing.

ARCHITECTURE
────────────
::

    factory chain (outermost first)          handler chain it produces
    ───────────────────────────────          ─────────────────────────
    EventInspectionFactoryDecorator    →     EventInspectionHandlerDecorator
      ThrottleFactoryDecorator         →       ThrottleHandlerDecorator (if limited)
        CancellationFactoryDecorator   →         CancellationHandlerDecorator
          ValidationFactoryDecorator
            factory                    →           handler

Every handler decorator forwards ``aclose`` to the handler it wraps.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from shipwright.core.cancellation import CancellationToken
from shipwright.core.errors import InvalidArgumentError, ValidationFailedError
from shipwright.dataflows.transformations.base import (
    Transformation,
    TransformationFactory,
    TransformationHandler,
)
from shipwright.validation import rules
from shipwright.validation.adapter import ValidatorRegistry
from shipwright.validation.results import ValidationResult

if TYPE_CHECKING:
    from shipwright.dataflows.record import Record


# === HANDLER DECORATORS ===


class _HandlerDecorator(TransformationHandler):
    def __init__(self, inner: TransformationHandler):
        if inner is None:
            raise InvalidArgumentError("inner")
        self.inner = inner

    async def aclose(self) -> None:
        await self.inner.aclose()


class CancellationHandlerDecorator(_HandlerDecorator):
    """Checks for cancellation before each record."""

    async def transform(self, record: Record, token: CancellationToken) -> None:
        if record is None:
            raise InvalidArgumentError("record")
        token.raise_if_cancelled()
        await self.inner.transform(record, token)


class EventInspectionHandlerDecorator(_HandlerDecorator):
    """Skips records that already carry a fatal event."""

    async def transform(self, record: Record, token: CancellationToken) -> None:
        if record is None:
            raise InvalidArgumentError("record")
        if record.has_fatal_event:
            return
        await self.inner.transform(record, token)


class ThrottleHandlerDecorator(_HandlerDecorator):
    """Limits concurrent transforms with a semaphore."""

    def __init__(self, max_degree_of_parallelism: int, inner: TransformationHandler):
        if max_degree_of_parallelism < 1:
            raise InvalidArgumentError(
                "max_degree_of_parallelism",
                f"max_degree_of_parallelism must be at least 1, got {max_degree_of_parallelism}",
            )
        super().__init__(inner)
        self.max_degree_of_parallelism = max_degree_of_parallelism
        self._semaphore = asyncio.Semaphore(max_degree_of_parallelism)

    async def transform(self, record: Record, token: CancellationToken) -> None:
        if record is None:
            raise InvalidArgumentError("record")
        async with self._semaphore:
            await self.inner.transform(record, token)


# === FACTORY DECORATORS ===


class EventInspectionFactoryDecorator(TransformationFactory[Transformation]):
    def __init__(self, inner: TransformationFactory):
        self.inner = inner

    async def create(
        self, transformation: Transformation, token: CancellationToken
    ) -> TransformationHandler:
        if transformation is None:
            raise InvalidArgumentError("transformation")
        return EventInspectionHandlerDecorator(await self.inner.create(transformation, token))


class ThrottleFactoryDecorator(TransformationFactory[Transformation]):
    def __init__(self, inner: TransformationFactory):
        self.inner = inner

    async def create(
        self, transformation: Transformation, token: CancellationToken
    ) -> TransformationHandler:
        if transformation is None:
            raise InvalidArgumentError("transformation")
        limit = transformation.max_degree_of_parallelism
        handler = await self.inner.create(transformation, token)
        if limit is None:
            return handler
        try:
            return ThrottleHandlerDecorator(limit, handler)
        except BaseException:
            await handler.aclose()
            raise


class CancellationFactoryDecorator(TransformationFactory[Transformation]):
    def __init__(self, inner: TransformationFactory):
        self.inner = inner

    async def create(
        self, transformation: Transformation, token: CancellationToken
    ) -> TransformationHandler:
        if transformation is None:
            raise InvalidArgumentError("transformation")
        token.raise_if_cancelled()
        return CancellationHandlerDecorator(await self.inner.create(transformation, token))


class ValidationFactoryDecorator(TransformationFactory[Transformation]):
    def __init__(
        self,
        inner: TransformationFactory,
        validators: ValidatorRegistry,
        transformation_type: type,
    ):
        self.inner = inner
        self._validators = validators
        self._transformation_type = transformation_type

    async def create(
        self, transformation: Transformation, token: CancellationToken
    ) -> TransformationHandler:
        if transformation is None:
            raise InvalidArgumentError("transformation")
        result = await self._validators.adapter(self._transformation_type).validate(
            transformation
        )
        # The limit applies to every transformation type, registered validator or not.
        failures = (
            *result.failures,
            *rules.optional_at_least(
                "max_degree_of_parallelism", transformation.max_degree_of_parallelism, 1
            ),
        )
        if failures:
            raise ValidationFailedError(ValidationResult(failures))
        return await self.inner.create(transformation, token)


__all__ = [
    "CancellationFactoryDecorator",
    "CancellationHandlerDecorator",
    "EventInspectionFactoryDecorator",
    "EventInspectionHandlerDecorator",
    "ThrottleFactoryDecorator",
    "ThrottleHandlerDecorator",
    "ValidationFactoryDecorator",
]
