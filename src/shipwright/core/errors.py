"""
Structured error types for Shipwright.

Every failure raised by the dispatch runtime, the validation aggregator and
the dataflow composition engine is a :class:`ShipwrightError`. Errors carry a
category, a retryable flag, structured context and an optional chained cause
so callers can route, report and log them without parsing messages.

Manifesto:
    - **Typed hierarchy:** one class per failure mode in the taxonomy
    - **No silent retries:** nothing in the core is retryable by default
    - **Rich context:** errors carry metadata for logging and alerting
    - **Chaining:** original exceptions are preserved as ``cause``

Architecture:
    ::

        ShipwrightError (category, retryable, context, cause)
        ├── InvalidArgumentError      ARGUMENT   required input was None
        ├── ConfigError               CONFIG
        │   └── MissingHandlerError              no handler/validator/factory
        ├── ValidationFailedError     VALIDATION aggregated failures
        ├── OperationCancelledError   CANCELLED  cooperative cancellation
        ├── BuildFailureError         BUILD      transformation build failed
        ├── SourceError               SOURCE
        │   └── SourceNotFoundError
        └── DatabaseError             DATABASE

Tags:
    error-handling, exception-hierarchy, error-context, shipwright-core

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from shipwright.validation.results import ValidationResult


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Categories are grouped by who has to act on them:
    - **Caller defects:** ARGUMENT, CONFIG
    - **Rejected values:** VALIDATION
    - **Control flow:** CANCELLED
    - **Collaborators:** BUILD, SOURCE, DATABASE
    - **Internal errors:** INTERNAL, UNKNOWN
    """

    ARGUMENT = "ARGUMENT"         # Required input was absent
    CONFIG = "CONFIG"             # Missing registration, bad wiring
    VALIDATION = "VALIDATION"     # Value rejected by validators
    CANCELLED = "CANCELLED"       # Cooperative cancellation observed
    BUILD = "BUILD"               # Transformation handler could not be built
    SOURCE = "SOURCE"             # Source reader failure
    DATABASE = "DATABASE"         # Connection or query failure
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"           # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Typed fields cover the identifiers the dataflow runtime knows about;
    anything else lands in ``metadata``. ``to_dict()`` drops unset fields so
    the result can be passed straight to a structured logger.

    Attributes:
        dataflow: Name of the dataflow being executed
        run_id: Identifier of the dataflow run
        command_type: Name of the command type being dispatched
        source_type: Name of the source type being read
        transformation_type: Name of the transformation type being built
        position: Record position within the dataflow
        metadata: Additional key-value pairs
    """

    dataflow: str | None = None
    run_id: str | None = None
    command_type: str | None = None
    source_type: str | None = None
    transformation_type: str | None = None
    position: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["dataflow", "run_id", "command_type", "source_type",
                    "transformation_type", "position"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ShipwrightError(Exception):
    """
    Base exception for all Shipwright errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    call sites only pass a message (and optionally context or a cause).

    Examples:
        >>> error = ShipwrightError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(dataflow="orders").context.dataflow
        'orders'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ShipwrightError:
        """
        Add context to this error (fluent API).

        Usage:
            raise SourceError("Failed").with_context(source_type="CsvSource")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CALLER DEFECTS
# =============================================================================


class InvalidArgumentError(ShipwrightError):
    """A required argument was ``None``. Raised before any work begins."""

    default_category = ErrorCategory.ARGUMENT

    def __init__(self, argument: str, message: str | None = None, **kwargs: Any):
        self.argument = argument
        super().__init__(message or f"Argument is required: {argument}", **kwargs)


class ConfigError(ShipwrightError):
    """
    Configuration error.

    Never retryable - the wiring must be fixed.
    """

    default_category = ErrorCategory.CONFIG


class MissingHandlerError(ConfigError):
    """No implementation is registered for a required contract."""

    def __init__(self, contract: str, message: str | None = None, **kwargs: Any):
        self.contract = contract
        super().__init__(message or f"Missing required implementation: {contract}", **kwargs)


# =============================================================================
# REJECTED VALUES
# =============================================================================


class ValidationFailedError(ShipwrightError):
    """
    A value was rejected by its validators.

    Carries the complete aggregated result, never only the first failure.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(self, result: ValidationResult, message: str | None = None, **kwargs: Any):
        self.result = result
        if message is None:
            details = "; ".join(f"{f.field}: {f.message}" for f in result.failures)
            message = f"Validation failed: {details}" if details else "Validation failed"
        super().__init__(message, **kwargs)

    @property
    def failures(self) -> list:
        return list(self.result.failures)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["failures"] = [
            {"field": f.field, "message": f.message} for f in self.result.failures
        ]
        return result


# =============================================================================
# CONTROL FLOW
# =============================================================================


class OperationCancelledError(ShipwrightError):
    """Cancellation was requested and observed at a checkpoint."""

    default_category = ErrorCategory.CANCELLED

    def __init__(self, message: str = "The operation was cancelled", **kwargs: Any):
        super().__init__(message, **kwargs)


# =============================================================================
# COLLABORATOR ERRORS
# =============================================================================


class BuildFailureError(ShipwrightError):
    """A transformation handler could not be built from its definition."""

    default_category = ErrorCategory.BUILD


class SourceError(ShipwrightError):
    """Error reading from a record source."""

    default_category = ErrorCategory.SOURCE


class SourceNotFoundError(SourceError):
    """Source data not found (missing file, etc.)."""

    pass


class DatabaseError(ShipwrightError):
    """Database connection or query error."""

    default_category = ErrorCategory.DATABASE


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ShipwrightError",
    "InvalidArgumentError",
    "ConfigError",
    "MissingHandlerError",
    "ValidationFailedError",
    "OperationCancelledError",
    "BuildFailureError",
    "SourceError",
    "SourceNotFoundError",
    "DatabaseError",
]
