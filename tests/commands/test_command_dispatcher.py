"""
Tests for the command dispatch runtime.

Covers:
- Result type discovery from the command declaration
- Exact-type handler resolution
- Decorator order: cancellation, then validation, then handler
- Missing handler / missing validator errors naming the contract
"""

from dataclasses import dataclass
from typing import TypeVar
from unittest.mock import AsyncMock

import pytest

from shipwright.commands import Command, CommandDispatcher, CommandHandler, result_type_of
from shipwright.core.cancellation import CancellationToken
from shipwright.core.errors import (
    InvalidArgumentError,
    MissingHandlerError,
    OperationCancelledError,
    ValidationFailedError,
)
from shipwright.validation import ValidationFailure, ValidatorRegistry


@dataclass(frozen=True)
class Greet(Command[str]):
    name: str = ""


@dataclass(frozen=True)
class LoudGreet(Greet):
    pass


@dataclass(frozen=True)
class Touch(Command[None]):
    path: str = "x"


T = TypeVar("T")


@dataclass(frozen=True)
class Lookup(Command[T]):
    key: str = ""


@dataclass(frozen=True)
class Count(Lookup[int]):
    pass


@dataclass(frozen=True)
class CountNothing(Lookup[None]):
    pass


class GreetValidator:
    def __init__(self) -> None:
        self.calls = 0

    def validate(self, value):
        self.calls += 1
        return [] if value.name else [ValidationFailure("name", "must not be blank")]


class AcceptAll:
    def validate(self, value):
        return []


class GreetHandler(CommandHandler[Greet, str]):
    def __init__(self) -> None:
        self.calls = 0

    async def execute(self, command, token):
        self.calls += 1
        return f"hello {command.name}"


@pytest.fixture
def greet_validator() -> GreetValidator:
    return GreetValidator()


@pytest.fixture
def dispatcher(validators: ValidatorRegistry, greet_validator: GreetValidator) -> CommandDispatcher:
    validators.register(Greet, greet_validator)
    return CommandDispatcher(validators)


class TestResultType:
    def test_declared_result_type(self):
        assert result_type_of(Greet) is str

    def test_inherited_result_type(self):
        assert result_type_of(LoudGreet) is str

    def test_none_result_type(self):
        assert result_type_of(Touch) is None

    def test_undeclared_result_type(self):
        class Bare(Command):
            pass

        with pytest.raises(TypeError):
            result_type_of(Bare)

    def test_result_type_through_generic_base(self):
        assert result_type_of(Count) is int
        assert result_type_of(CountNothing) is None

    def test_unbound_generic_base_is_undeclared(self):
        class StillGeneric(Lookup):
            pass

        with pytest.raises(TypeError):
            result_type_of(StillGeneric)

    @pytest.mark.asyncio
    async def test_dispatch_through_generic_base(self, validators):
        validators.register(Count, AcceptAll())
        handler = AsyncMock(spec=CommandHandler)
        handler.execute.return_value = 3
        dispatcher = CommandDispatcher(validators)
        dispatcher.register(Count, handler)

        assert await dispatcher.execute(Count("rows")) == 3
        assert dispatcher.list_handlers() == ["CommandHandler[Count, int]"]


class TestCommandDispatcher:
    """Test CommandDispatcher.execute."""

    @pytest.mark.asyncio
    async def test_executes_registered_handler(self, dispatcher):
        handler = GreetHandler()
        dispatcher.register(Greet, handler)

        assert await dispatcher.execute(Greet("ada")) == "hello ada"
        assert handler.calls == 1

    @pytest.mark.asyncio
    async def test_unit_result_command(self, validators):
        validators.register(Touch, AcceptAll())
        handler = AsyncMock(spec=CommandHandler)
        handler.execute.return_value = None
        dispatcher = CommandDispatcher(validators)
        dispatcher.register(Touch, handler)

        assert await dispatcher.execute(Touch()) is None
        handler.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_handler_names_contract(self, dispatcher):
        with pytest.raises(MissingHandlerError) as exc_info:
            await dispatcher.execute(Greet("ada"))
        assert exc_info.value.contract == "CommandHandler[Greet, str]"

    @pytest.mark.asyncio
    async def test_no_inheritance_fallback(self, dispatcher):
        dispatcher.register(Greet, GreetHandler())
        with pytest.raises(MissingHandlerError) as exc_info:
            await dispatcher.execute(LoudGreet("ada"))
        assert exc_info.value.contract == "CommandHandler[LoudGreet, str]"

    @pytest.mark.asyncio
    async def test_missing_validator(self, validators):
        dispatcher = CommandDispatcher(validators)
        handler = GreetHandler()
        dispatcher.register(Greet, handler)

        with pytest.raises(MissingHandlerError) as exc_info:
            await dispatcher.execute(Greet("ada"))
        assert exc_info.value.contract == "Validator[Greet]"
        assert handler.calls == 0

    @pytest.mark.asyncio
    async def test_invalid_command_never_reaches_handler(self, dispatcher):
        handler = GreetHandler()
        dispatcher.register(Greet, handler)

        with pytest.raises(ValidationFailedError) as exc_info:
            await dispatcher.execute(Greet(""))
        assert [f.field for f in exc_info.value.failures] == ["name"]
        assert handler.calls == 0

    @pytest.mark.asyncio
    async def test_cancellation_checked_before_validation(self, dispatcher, greet_validator):
        handler = GreetHandler()
        dispatcher.register(Greet, handler)

        with pytest.raises(OperationCancelledError):
            await dispatcher.execute(Greet(""), CancellationToken.cancelled())
        assert greet_validator.calls == 0
        assert handler.calls == 0

    @pytest.mark.asyncio
    async def test_none_command(self, dispatcher):
        with pytest.raises(InvalidArgumentError):
            await dispatcher.execute(None)  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_handler_errors_propagate_unchanged(self, dispatcher):
        handler = AsyncMock(spec=CommandHandler)
        error = RuntimeError("boom")
        handler.execute.side_effect = error
        dispatcher.register(Greet, handler)

        with pytest.raises(RuntimeError) as exc_info:
            await dispatcher.execute(Greet("ada"))
        assert exc_info.value is error

    def test_registration_helpers(self, dispatcher):
        dispatcher.register(Greet, GreetHandler())
        assert dispatcher.has(Greet)
        assert dispatcher.list_handlers() == ["CommandHandler[Greet, str]"]
        assert dispatcher.unregister(Greet) is True
        assert not dispatcher.has(Greet)

    def test_register_none_rejected(self, dispatcher):
        with pytest.raises(InvalidArgumentError):
            dispatcher.register(Greet, None)  # type: ignore[arg-type]
