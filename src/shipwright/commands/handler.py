"""Command handler contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from shipwright.commands.command import Command
from shipwright.core.cancellation import CancellationToken

TCommand = TypeVar("TCommand", bound=Command)
TResult = TypeVar("TResult")


class CommandHandler(ABC, Generic[TCommand, TResult]):
    """Executes one exact command type and produces its result.

    Implementations are registered with a
    :class:`~shipwright.commands.dispatcher.CommandDispatcher`, which wraps
    them in cancellation and validation decorators. By the time ``execute``
    runs, the command is non-``None``, cancellation has not been requested
    and the command has passed validation.
    """

    @abstractmethod
    async def execute(self, command: TCommand, token: CancellationToken) -> TResult:
        """Execute ``command``."""


__all__ = ["CommandHandler"]
