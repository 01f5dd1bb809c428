"""
Shipwright core primitives.

Errors, cancellation tokens, the async memoizing cache, structured logging
and settings. Everything else in the package builds on these.
"""

from shipwright.core.cache import AsyncCache
from shipwright.core.cancellation import CancellationToken, CancellationTokenSource, ensure_token
from shipwright.core.errors import (
    BuildFailureError,
    ConfigError,
    DatabaseError,
    ErrorCategory,
    ErrorContext,
    InvalidArgumentError,
    MissingHandlerError,
    OperationCancelledError,
    ShipwrightError,
    SourceError,
    SourceNotFoundError,
    ValidationFailedError,
)

__all__ = [
    "AsyncCache",
    "CancellationToken",
    "CancellationTokenSource",
    "ensure_token",
    "BuildFailureError",
    "ConfigError",
    "DatabaseError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidArgumentError",
    "MissingHandlerError",
    "OperationCancelledError",
    "ShipwrightError",
    "SourceError",
    "SourceNotFoundError",
    "ValidationFailedError",
]
