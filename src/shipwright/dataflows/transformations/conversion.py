"""
Conversion transformation: convert field values with a converter.

A converter is a callable taking the current value and returning the
converted one; it signals "cannot convert" by raising ``ValueError``,
``TypeError`` or ``ArithmeticError``. Built-in converters are available by
name:

    ========  ==========================================================
    name      result
    ========  ==========================================================
    integer   ``int`` (numeric strings with surrounding whitespace allowed)
    decimal   ``decimal.Decimal``
    boolean   ``bool`` (true/false, yes/no, 1/0, on/off)
    date      ``datetime.date`` (ISO 8601, or the date part of a datetime)
    datetime  ``datetime.datetime`` (ISO 8601)
    text      ``str`` (stripped)
    ========  ==========================================================

An unknown converter name fails the build with :class:`BuildFailureError`.
"""

from __future__ import annotations

import datetime as dt
import decimal
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from shipwright.core.cancellation import CancellationToken
from shipwright.core.errors import BuildFailureError, InvalidArgumentError
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

Converter = Callable[[Any], Any]

_CONVERSION_ERRORS = (ValueError, TypeError, ArithmeticError)


# === BUILT-IN CONVERTERS ===


def to_integer(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("booleans are not integers")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value.strip())
    if isinstance(value, (float, decimal.Decimal)):
        if value != int(value):
            raise ValueError(f"{value!r} has a fractional part")
        return int(value)
    raise TypeError(f"cannot convert {type(value).__name__} to integer")


def to_decimal(value: Any) -> decimal.Decimal:
    if isinstance(value, bool):
        raise TypeError("booleans are not decimals")
    if isinstance(value, decimal.Decimal):
        return value
    if isinstance(value, (int, float)):
        return decimal.Decimal(str(value))
    if isinstance(value, str):
        try:
            return decimal.Decimal(value.strip())
        except decimal.InvalidOperation as e:
            raise ValueError(f"{value!r} is not a decimal") from e
    raise TypeError(f"cannot convert {type(value).__name__} to decimal")


_TRUE = frozenset({"true", "yes", "y", "1", "on"})
_FALSE = frozenset({"false", "no", "n", "0", "off"})


def to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, decimal.Decimal)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ValueError(f"{value!r} is not a boolean")
    raise TypeError(f"cannot convert {type(value).__name__} to boolean")


def to_datetime(value: Any) -> dt.datetime:
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        return dt.datetime.fromisoformat(value.strip())
    raise TypeError(f"cannot convert {type(value).__name__} to datetime")


def to_date(value: Any) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    return to_datetime(value).date()


def to_text(value: Any) -> str:
    return str(value).strip()


CONVERTERS: dict[str, Converter] = {
    "integer": to_integer,
    "decimal": to_decimal,
    "boolean": to_boolean,
    "date": to_date,
    "datetime": to_datetime,
    "text": to_text,
}


def resolve_converter(converter: str | Converter) -> Converter:
    """Return the callable for a converter name or the callable itself."""
    if isinstance(converter, str):
        try:
            return CONVERTERS[converter.strip().lower()]
        except KeyError:
            raise BuildFailureError(
                f"Unknown converter: {converter!r}. Available converters: {sorted(CONVERTERS)}"
            ) from None
    return converter


# === TRANSFORMATION ===


def conversion_failed_description(name: str) -> str:
    return f"Value of field {name} could not be converted"


@dataclass(frozen=True)
class FailureEvent:
    """How a failed conversion is reported on the record."""

    is_fatal: bool = True
    level: LogLevel = LogLevel.ERROR
    description: Callable[[str], str] = conversion_failed_description
    clear_field: bool = True


@dataclass(frozen=True)
class Conversion(Transformation):
    fields: tuple[str, ...] = ()
    converter: str | Converter | None = None
    failure_event: FailureEvent = field(default_factory=FailureEvent)


class ConversionValidator:
    def validate(self, transformation: Conversion) -> list[ValidationFailure]:
        failures = [
            *rules.not_empty("fields", transformation.fields),
            *rules.no_none_items("fields", transformation.fields),
            *rules.not_none("converter", transformation.converter),
            *rules.not_none("failure_event", transformation.failure_event),
        ]
        converter = transformation.converter
        if converter is not None and not isinstance(converter, str) and not callable(converter):
            failures.append(ValidationFailure("converter", "must be a converter name or callable"))
        return failures


class ConversionHandler(TransformationHandler):
    def __init__(self, transformation: Conversion, converter: Converter):
        self.transformation = transformation
        self.converter = converter

    async def transform(self, record: Record, token: CancellationToken) -> None:
        if record is None:
            raise InvalidArgumentError("record")
        failure = self.transformation.failure_event
        for name in self.transformation.fields:
            value = record.data.get(name)
            if value is None:
                continue
            try:
                record.data[name] = self.converter(value)
            except _CONVERSION_ERRORS as e:
                if failure.clear_field:
                    record.data.pop(name, None)
                record.events.append(
                    LogEvent(
                        description=failure.description(name),
                        level=failure.level,
                        is_fatal=failure.is_fatal,
                        value={"field": name, "value": value, "error": str(e)},
                    )
                )


class ConversionFactory(TransformationFactory[Conversion]):
    async def create(self, transformation: Conversion, token: CancellationToken) -> ConversionHandler:
        return ConversionHandler(transformation, resolve_converter(transformation.converter))


__all__ = [
    "CONVERTERS",
    "Conversion",
    "ConversionFactory",
    "ConversionHandler",
    "ConversionValidator",
    "Converter",
    "FailureEvent",
    "resolve_converter",
    "to_boolean",
    "to_date",
    "to_datetime",
    "to_decimal",
    "to_integer",
    "to_text",
]
