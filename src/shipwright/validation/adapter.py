"""
Validation aggregator.

Runs every validator registered for a value's exact type and returns the
union of their failures, or raises :class:`ValidationFailedError` carrying
that union.

Manifesto:
    Validators are small and independent: each inspects one concern and
    reports every problem it finds. The adapter is the only place that knows
    how many validators a type has, so "this type must be validated but
    nobody registered a validator" is detected here, once, instead of being
    silently treated as valid.

Architecture:
    ::

        ValidatorRegistry
          ├── .register(value_type, validator)
          ├── .validators_for(value_type)   exact type, registration order
          └── .adapter(value_type) → ValidationAdapter

        ValidationAdapter(validators)
          ├── .validate(value)          → ValidationResult (never raises on failures)
          └── .validate_and_raise(value) → None | ValidationFailedError

Examples:
    >>> registry = ValidatorRegistry()
    >>> registry.register(CsvSource, CsvSourceValidator())
    >>> result = await registry.adapter(CsvSource).validate(CsvSource(path=""))
    >>> result.fields()
    ['path']

Guardrails:
    - Lookup is by exact type; a validator registered for a base class does
      not run for subclasses.
    - A value whose type derives from :class:`RequiresValidation` with no
      validators raises :class:`MissingHandlerError`.

Tags:
    validation, aggregation, registry, shipwright-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Iterable, Sequence
from typing import Any, Protocol, runtime_checkable

from shipwright.core.errors import InvalidArgumentError, MissingHandlerError, ValidationFailedError
from shipwright.core.logging import get_logger
from shipwright.validation.results import ValidationFailure, ValidationResult

log = get_logger(__name__)


class RequiresValidation:
    """Marker base: values of this type must have at least one validator."""

    __slots__ = ()


@runtime_checkable
class Validator(Protocol):
    """Inspects a value and reports failures.

    ``validate`` may return the failures directly or an awaitable of them.
    """

    def validate(
        self, value: Any
    ) -> Iterable[ValidationFailure] | Awaitable[Iterable[ValidationFailure]]: ...


def _type_name(value_type: type) -> str:
    return getattr(value_type, "__qualname__", repr(value_type))


class ValidationAdapter:
    """Aggregates the failures of an ordered validator list."""

    def __init__(self, validators: Sequence[Validator] | None, *, value_type: type | None = None):
        if validators is None:
            raise InvalidArgumentError("validators")
        self._validators = tuple(validators)
        self._value_type = value_type

    @property
    def validators(self) -> tuple[Validator, ...]:
        return self._validators

    async def validate(self, value: Any) -> ValidationResult:
        """Run every validator and return the concatenated failures.

        Raises:
            InvalidArgumentError: If ``value`` is ``None``.
            MissingHandlerError: If the value requires validation and no
                validator is registered for its type.
        """
        if value is None:
            raise InvalidArgumentError("value")

        if not self._validators and isinstance(value, RequiresValidation):
            value_type = self._value_type or type(value)
            raise MissingHandlerError(f"Validator[{_type_name(value_type)}]")

        failures: list[ValidationFailure] = []
        for validator in self._validators:
            outcome = validator.validate(value)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            failures.extend(outcome)

        return ValidationResult(tuple(failures))

    async def validate_and_raise(self, value: Any) -> None:
        """Validate ``value`` and raise if any validator reported a failure.

        Raises:
            ValidationFailedError: Carrying the complete result.
        """
        result = await self.validate(value)
        if not result.is_valid:
            log.debug(
                "validation.failed",
                value_type=_type_name(type(value)),
                failures=[str(f) for f in result.failures],
            )
            raise ValidationFailedError(result)


class ValidatorRegistry:
    """Exact-type validator lookup, populated at start-up."""

    def __init__(self) -> None:
        self._validators: dict[type, list[Validator]] = {}

    def register(self, value_type: type, validator: Validator) -> None:
        if value_type is None:
            raise InvalidArgumentError("value_type")
        if validator is None:
            raise InvalidArgumentError("validator")
        self._validators.setdefault(value_type, []).append(validator)

    def validators_for(self, value_type: type) -> tuple[Validator, ...]:
        return tuple(self._validators.get(value_type, ()))

    def has(self, value_type: type) -> bool:
        return bool(self._validators.get(value_type))

    def adapter(self, value_type: type) -> ValidationAdapter:
        return ValidationAdapter(self.validators_for(value_type), value_type=value_type)

    async def validate(self, value: Any) -> ValidationResult:
        """Validate ``value`` with the validators registered for its type."""
        if value is None:
            raise InvalidArgumentError("value")
        return await self.adapter(type(value)).validate(value)

    async def validate_and_raise(self, value: Any) -> None:
        if value is None:
            raise InvalidArgumentError("value")
        await self.adapter(type(value)).validate_and_raise(value)

    def list_registered(self) -> list[str]:
        return sorted(_type_name(t) for t in self._validators)

    def clear(self) -> None:
        """Clear all validators (for testing)."""
        self._validators.clear()


__all__ = [
    "RequiresValidation",
    "Validator",
    "ValidationAdapter",
    "ValidatorRegistry",
]
