"""Validation failures and aggregated results.

A :class:`ValidationResult` is an ordered list of ``(field, message)``
failures. An empty result means the value is valid. Results from several
validators are concatenated in validator order; nothing is de-duplicated
or short-circuited.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ValidationFailure:
    """One rejected field of a validated value."""

    field: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "message": self.message}

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass(frozen=True)
class ValidationResult:
    """Ordered, immutable collection of validation failures."""

    failures: tuple[ValidationFailure, ...] = field(default_factory=tuple)

    @classmethod
    def valid(cls) -> ValidationResult:
        return cls()

    @classmethod
    def of(cls, failures: Iterable[ValidationFailure]) -> ValidationResult:
        return cls(tuple(failures))

    @property
    def is_valid(self) -> bool:
        return not self.failures

    def merge(self, other: ValidationResult) -> ValidationResult:
        """Concatenate ``other`` after this result's failures."""
        return ValidationResult(self.failures + other.failures)

    def fields(self) -> list[str]:
        """Field names in failure order (duplicates preserved)."""
        return [failure.field for failure in self.failures]

    def __iter__(self) -> Iterator[ValidationFailure]:
        return iter(self.failures)

    def __len__(self) -> int:
        return len(self.failures)


__all__ = ["ValidationFailure", "ValidationResult"]
