"""Reusable checks for writing validators.

Each helper returns a list with zero or one :class:`ValidationFailure` so a
validator can simply concatenate them::

    def validate(self, value):
        return [
            *not_blank("name", value.name),
            *at_least("buffer_size", value.buffer_size, 1),
        ]
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from shipwright.validation.results import ValidationFailure


def not_none(field: str, value: Any) -> list[ValidationFailure]:
    if value is None:
        return [ValidationFailure(field, "is required")]
    return []


def not_blank(field: str, value: str | None) -> list[ValidationFailure]:
    if value is None or not str(value).strip():
        return [ValidationFailure(field, "must not be blank")]
    return []


def not_empty(field: str, values: Iterable[Any] | None) -> list[ValidationFailure]:
    if values is None or len(tuple(values)) == 0:
        return [ValidationFailure(field, "must contain at least one item")]
    return []


def no_none_items(field: str, values: Iterable[Any] | None) -> list[ValidationFailure]:
    if values is None:
        return []
    if any(item is None for item in values):
        return [ValidationFailure(field, "must not contain empty items")]
    return []


def defined_pairs(field: str, pairs: Iterable[tuple[Any, Any]] | None) -> list[ValidationFailure]:
    """Both sides of every ``(left, right)`` mapping pair must be non-blank."""
    for left, right in pairs or ():
        if left is None or right is None:
            return [ValidationFailure(field, "must not contain empty items")]
        if not str(left).strip() or not str(right).strip():
            return [ValidationFailure(field, "must not contain blank items")]
    return []


def at_least(field: str, value: int | None, minimum: int) -> list[ValidationFailure]:
    if value is None or value < minimum:
        return [ValidationFailure(field, f"must be at least {minimum}")]
    return []


def optional_at_least(field: str, value: int | None, minimum: int) -> list[ValidationFailure]:
    if value is None:
        return []
    return at_least(field, value, minimum)


__all__ = [
    "not_none",
    "not_blank",
    "not_empty",
    "no_none_items",
    "defined_pairs",
    "at_least",
    "optional_at_least",
]
