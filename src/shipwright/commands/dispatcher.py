"""
Command Dispatcher - routes commands to their handlers.

Manifesto:
    Callers should not know which object handles a command, nor remember to
    validate it or check for cancellation first. The dispatcher resolves
    the handler registered for the command's exact ``(command type, result
    type)`` pair and runs it behind the standard decorator chain, so every
    command in the system gets the same cross-cutting behaviour.

Architecture:
    ::

        CommandDispatcher
          ├── .register(command_type, handler)  ─ wrap + store
          ├── .execute(command, token)          ─ resolve + run
          ├── .has(command_type)                ─ existence check
          └── .list_handlers()                  ─ registered contracts

        registered chain (built once, at registration):
          CancellationDecorator → ValidationDecorator → handler

Examples:
    >>> dispatcher = CommandDispatcher(validators)
    >>> dispatcher.register(BuildConnectionFactory, BuildConnectionFactoryHandler(builders))
    >>> factory = await dispatcher.execute(BuildConnectionFactory(info), token)

Guardrails:
    - No inheritance fallback: a handler for ``Base`` does not handle ``Sub``.
    - Dispatch keeps no state between calls.
    - Handler errors propagate unchanged.

Tags:
    commands, dispatcher, decorators, shipwright-core

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

from typing import Any

from shipwright.commands.command import Command, describe_result_type, result_type_of
from shipwright.commands.decorators import CancellationDecorator, ValidationDecorator
from shipwright.commands.handler import CommandHandler
from shipwright.core.cancellation import CancellationToken, ensure_token
from shipwright.core.errors import InvalidArgumentError, MissingHandlerError
from shipwright.core.logging import get_logger
from shipwright.validation.adapter import ValidatorRegistry

log = get_logger(__name__)

_HandlerKey = tuple[type, Any]


def _contract(command_type: type, result_type: Any) -> str:
    return f"CommandHandler[{command_type.__qualname__}, {describe_result_type(result_type)}]"


class CommandDispatcher:
    """Resolves and executes command handlers by exact command type."""

    def __init__(self, validators: ValidatorRegistry):
        if validators is None:
            raise InvalidArgumentError("validators")
        self._validators = validators
        self._handlers: dict[_HandlerKey, CommandHandler] = {}

    def register(self, command_type: type[Command], handler: CommandHandler) -> None:
        """Register ``handler`` for ``command_type``.

        The result type is read from the command class declaration. A later
        registration for the same pair replaces the earlier one.
        """
        if command_type is None:
            raise InvalidArgumentError("command_type")
        if handler is None:
            raise InvalidArgumentError("handler")

        key = (command_type, result_type_of(command_type))
        self._handlers[key] = CancellationDecorator(
            ValidationDecorator(handler, self._validators, command_type)
        )

    def has(self, command_type: type[Command]) -> bool:
        return (command_type, result_type_of(command_type)) in self._handlers

    def unregister(self, command_type: type[Command]) -> bool:
        return self._handlers.pop((command_type, result_type_of(command_type)), None) is not None

    def list_handlers(self) -> list[str]:
        return sorted(_contract(c, r) for c, r in self._handlers)

    async def execute(self, command: Command[Any], token: CancellationToken | None = None) -> Any:
        """Execute ``command`` with the handler registered for its exact type.

        Raises:
            InvalidArgumentError: If ``command`` is ``None``.
            MissingHandlerError: If no handler (or no validator) is registered.
            OperationCancelledError: If ``token`` is already cancelled.
            ValidationFailedError: If the command fails validation.
        """
        if command is None:
            raise InvalidArgumentError("command")

        command_type = type(command)
        result_type = result_type_of(command_type)
        handler = self._handlers.get((command_type, result_type))
        if handler is None:
            raise MissingHandlerError(_contract(command_type, result_type))

        log.debug("command.dispatch", command_type=command_type.__qualname__)
        return await handler.execute(command, ensure_token(token))


__all__ = ["CommandDispatcher"]
