"""Code transformation: run a callable against every record."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

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

CodeFunction = Callable[["Record", CancellationToken], Any]


@dataclass(frozen=True)
class Code(Transformation):
    """Call ``func(record, token)``; it may be a plain or a coroutine function."""

    func: CodeFunction | None = None


class CodeValidator:
    def validate(self, transformation: Code) -> list[ValidationFailure]:
        failures = [
            *rules.not_none("func", transformation.func),
        ]
        if transformation.func is not None and not callable(transformation.func):
            failures.append(ValidationFailure("func", "must be callable"))
        return failures


class CodeHandler(TransformationHandler):
    def __init__(self, transformation: Code):
        if transformation is None:
            raise InvalidArgumentError("transformation")
        self.transformation = transformation

    async def transform(self, record: Record, token: CancellationToken) -> None:
        if record is None:
            raise InvalidArgumentError("record")
        outcome = self.transformation.func(record, token)
        if inspect.isawaitable(outcome):
            await outcome


class CodeFactory(TransformationFactory[Code]):
    async def create(self, transformation: Code, token: CancellationToken) -> CodeHandler:
        return CodeHandler(transformation)


__all__ = ["Code", "CodeFactory", "CodeFunction", "CodeHandler", "CodeValidator"]
