"""Field presence transformations: default values and required values."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from shipwright.core.cancellation import CancellationToken
from shipwright.core.errors import InvalidArgumentError
from shipwright.dataflows.record import LogEvent, LogLevel
from shipwright.dataflows.transformations.base import (
    Transformation,
    TransformationFactory,
    TransformationHandler,
)
from shipwright.validation import rules
from shipwright.validation.results import ValidationFailure

if TYPE_CHECKING:
    from shipwright.dataflows.record import Record


def _is_blank(value: Any) -> bool:
    return isinstance(value, str) and not value.strip()


# === DEFAULT VALUE ===


@dataclass(frozen=True)
class DefaultValue(Transformation):
    """Fill missing fields with values produced by a factory.

    A field is missing when it is absent or ``None``; with
    ``default_on_blank`` a whitespace-only string counts as missing too.
    """

    defaults: tuple[tuple[str, Callable[[], Any]], ...] = ()
    default_on_blank: bool = False


class DefaultValueValidator:
    def validate(self, transformation: DefaultValue) -> list[ValidationFailure]:
        failures = [
            *rules.not_none("defaults", transformation.defaults),
        ]
        for name, factory in transformation.defaults or ():
            if name is None or not str(name).strip():
                failures.append(ValidationFailure("defaults", "must not contain blank field names"))
                break
            if not callable(factory):
                failures.append(ValidationFailure("defaults", f"default for {name} is not callable"))
        return failures


class DefaultValueHandler(TransformationHandler):
    def __init__(self, transformation: DefaultValue):
        self.transformation = transformation

    async def transform(self, record: Record, token: CancellationToken) -> None:
        if record is None:
            raise InvalidArgumentError("record")
        for name, factory in self.transformation.defaults:
            value = record.data.get(name)
            missing = value is None or (self.transformation.default_on_blank and _is_blank(value))
            if missing:
                record.data[name] = factory()


class DefaultValueFactory(TransformationFactory[DefaultValue]):
    async def create(self, transformation: DefaultValue, token: CancellationToken) -> DefaultValueHandler:
        return DefaultValueHandler(transformation)


# === REQUIRED VALUE ===


def missing_field_description(name: str) -> str:
    return f"Required field {name} is missing a value"


@dataclass(frozen=True)
class RequiredValue(Transformation):
    """Report fields that are absent or ``None``.

    Each violation removes the field and appends a :class:`LogEvent`.
    Whitespace-only strings count as missing unless ``allow_blank``.
    """

    fields: tuple[str, ...] = ()
    allow_blank: bool = True
    violation_is_fatal: bool = True
    violation_level: LogLevel = LogLevel.ERROR
    violation_description: Callable[[str], str] = missing_field_description


class RequiredValueValidator:
    def validate(self, transformation: RequiredValue) -> list[ValidationFailure]:
        failures = [
            *rules.not_empty("fields", transformation.fields),
        ]
        if any(name is None or not str(name).strip() for name in transformation.fields or ()):
            failures.append(ValidationFailure("fields", "must not contain blank items"))
        if not callable(transformation.violation_description):
            failures.append(ValidationFailure("violation_description", "must be callable"))
        return failures


class RequiredValueHandler(TransformationHandler):
    def __init__(self, transformation: RequiredValue):
        self.transformation = transformation

    async def transform(self, record: Record, token: CancellationToken) -> None:
        if record is None:
            raise InvalidArgumentError("record")
        settings = self.transformation
        for name in settings.fields:
            value = record.data.get(name)
            missing = value is None or (not settings.allow_blank and _is_blank(value))
            if missing:
                record.data.pop(name, None)
                record.events.append(
                    LogEvent(
                        description=settings.violation_description(name),
                        level=settings.violation_level,
                        is_fatal=settings.violation_is_fatal,
                        value={"field": name},
                    )
                )


class RequiredValueFactory(TransformationFactory[RequiredValue]):
    async def create(self, transformation: RequiredValue, token: CancellationToken) -> RequiredValueHandler:
        return RequiredValueHandler(transformation)


__all__ = [
    "DefaultValue",
    "DefaultValueFactory",
    "DefaultValueHandler",
    "DefaultValueValidator",
    "RequiredValue",
    "RequiredValueFactory",
    "RequiredValueHandler",
    "RequiredValueValidator",
    "missing_field_description",
]
