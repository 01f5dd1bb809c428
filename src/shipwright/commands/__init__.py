"""Command dispatch runtime."""

from shipwright.commands.command import Command, NoResultCommand, result_type_of
from shipwright.commands.decorators import CancellationDecorator, ValidationDecorator
from shipwright.commands.dispatcher import CommandDispatcher
from shipwright.commands.handler import CommandHandler

__all__ = [
    "CancellationDecorator",
    "Command",
    "CommandDispatcher",
    "CommandHandler",
    "NoResultCommand",
    "ValidationDecorator",
    "result_type_of",
]
