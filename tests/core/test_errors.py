"""Tests for shipwright.core.errors module."""

from shipwright.core.errors import (
    BuildFailureError,
    ConfigError,
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
from shipwright.validation.results import ValidationFailure, ValidationResult


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_empty_context(self):
        ctx = ErrorContext()
        assert ctx.dataflow is None
        assert ctx.position is None
        assert ctx.metadata == {}

    def test_to_dict_excludes_none(self):
        ctx = ErrorContext(dataflow="orders", position=3)
        assert ctx.to_dict() == {"dataflow": "orders", "position": 3}

    def test_to_dict_merges_metadata(self):
        ctx = ErrorContext(run_id="abc", metadata={"path": "/tmp/x.csv"})
        assert ctx.to_dict() == {"run_id": "abc", "path": "/tmp/x.csv"}


class TestShipwrightError:
    """Test the base error."""

    def test_defaults(self):
        error = ShipwrightError("boom")
        assert error.message == "boom"
        assert error.category == ErrorCategory.INTERNAL
        assert error.retryable is False
        assert error.cause is None

    def test_cause_is_chained(self):
        cause = ValueError("bad")
        error = SourceError("read failed", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "bad"

    def test_with_context_sets_known_fields_and_metadata(self):
        error = SourceError("read failed").with_context(source_type="CsvSource", line=12)
        assert error.context.source_type == "CsvSource"
        assert error.context.metadata == {"line": 12}

    def test_to_dict(self):
        error = ConfigError("bad wiring").with_context(dataflow="orders")
        d = error.to_dict()
        assert d["error_type"] == "ConfigError"
        assert d["category"] == "CONFIG"
        assert d["context"] == {"dataflow": "orders"}

    def test_repr(self):
        assert repr(BuildFailureError("x")) == "BuildFailureError('x', category=BUILD)"


class TestSpecificErrors:
    """Test the error taxonomy."""

    def test_invalid_argument_names_argument(self):
        error = InvalidArgumentError("command")
        assert error.argument == "command"
        assert error.category == ErrorCategory.ARGUMENT
        assert "command" in error.message

    def test_missing_handler_names_contract(self):
        error = MissingHandlerError("CommandHandler[Ping, str]")
        assert isinstance(error, ConfigError)
        assert error.contract == "CommandHandler[Ping, str]"
        assert error.message == "Missing required implementation: CommandHandler[Ping, str]"

    def test_validation_failed_carries_every_failure(self):
        result = ValidationResult.of(
            [ValidationFailure("a", "is required"), ValidationFailure("b", "must not be blank")]
        )
        error = ValidationFailedError(result)
        assert error.category == ErrorCategory.VALIDATION
        assert [f.field for f in error.failures] == ["a", "b"]
        assert "a: is required" in error.message
        assert "b: must not be blank" in error.message
        assert len(error.to_dict()["failures"]) == 2

    def test_cancelled_default_message(self):
        error = OperationCancelledError()
        assert error.category == ErrorCategory.CANCELLED
        assert "cancelled" in error.message

    def test_source_not_found_is_source_error(self):
        assert isinstance(SourceNotFoundError("missing"), SourceError)

