"""Cross-cutting command handler decorators.

The dispatcher composes them at registration time, outermost first::

    CancellationDecorator → ValidationDecorator → handler

so a cancelled token is reported before the command is validated, and an
invalid command never reaches the handler.
"""

from __future__ import annotations

from typing import Any

from shipwright.commands.command import Command
from shipwright.commands.handler import CommandHandler
from shipwright.core.cancellation import CancellationToken
from shipwright.core.errors import InvalidArgumentError
from shipwright.validation.adapter import ValidatorRegistry


class CancellationDecorator(CommandHandler[Command, Any]):
    """Raises if cancellation was requested before delegating."""

    def __init__(self, inner: CommandHandler):
        self.inner = inner

    async def execute(self, command: Command, token: CancellationToken) -> Any:
        if command is None:
            raise InvalidArgumentError("command")
        token.raise_if_cancelled()
        return await self.inner.execute(command, token)


class ValidationDecorator(CommandHandler[Command, Any]):
    """Validates the command with every validator registered for its type."""

    def __init__(self, inner: CommandHandler, validators: ValidatorRegistry, command_type: type):
        self.inner = inner
        self._validators = validators
        self._command_type = command_type

    async def execute(self, command: Command, token: CancellationToken) -> Any:
        if command is None:
            raise InvalidArgumentError("command")
        await self._validators.adapter(self._command_type).validate_and_raise(command)
        return await self.inner.execute(command, token)


__all__ = ["CancellationDecorator", "ValidationDecorator"]
