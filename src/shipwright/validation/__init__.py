"""Validation aggregation: results, validator registry and reusable rules."""

from shipwright.validation.adapter import (
    RequiresValidation,
    ValidationAdapter,
    Validator,
    ValidatorRegistry,
)
from shipwright.validation.results import ValidationFailure, ValidationResult
from shipwright.validation.schema import SchemaValidator

__all__ = [
    "RequiresValidation",
    "SchemaValidator",
    "ValidationAdapter",
    "ValidationFailure",
    "ValidationResult",
    "Validator",
    "ValidatorRegistry",
]
