"""Validators backed by pydantic models.

:class:`SchemaValidator` checks a dataclass-style configuration value against
a pydantic model and reports each pydantic error as a
:class:`ValidationFailure` whose field is the dotted error location.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from shipwright.validation.results import ValidationFailure


def _fields_of(value: Any) -> dict[str, Any]:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    return dict(vars(value))


class SchemaValidator:
    """Validate values against a pydantic model.

    Args:
        model: Pydantic model describing the accepted shape.
        extract: Turns the value into the mapping handed to the model.
            Defaults to the value's dataclass fields (shallow).
    """

    def __init__(
        self,
        model: type[BaseModel],
        extract: Callable[[Any], dict[str, Any]] | None = None,
    ):
        self._model = model
        self._extract = extract or _fields_of

    def validate(self, value: Any) -> list[ValidationFailure]:
        try:
            self._model.model_validate(self._extract(value))
        except ValidationError as exc:
            return [
                ValidationFailure(
                    ".".join(str(part) for part in error["loc"]) or "__root__",
                    error["msg"],
                )
                for error in exc.errors()
            ]
        return []


__all__ = ["SchemaValidator"]
