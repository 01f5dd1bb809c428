"""Command value objects.

A command is an immutable request parameterised by the type of its result::

    @dataclass(frozen=True)
    class BuildConnectionFactory(Command[DbConnectionFactory]):
        connection_info: DbConnectionInfo

Commands that produce nothing use ``None`` as their result type
(``Command[None]``, aliased as :data:`NoResultCommand`). Every command
requires validation: dispatching a command type with no registered validator
fails with :class:`~shipwright.core.errors.MissingHandlerError`.
"""

from __future__ import annotations

import functools
from typing import Any, Generic, TypeVar, get_args, get_origin

from shipwright.validation.adapter import RequiresValidation

TResult = TypeVar("TResult")

_NONE_TYPE = type(None)


class Command(RequiresValidation, Generic[TResult]):
    """Base class for all commands."""

    __slots__ = ()


NoResultCommand = Command[None]


_UNRESOLVED = object()


def _declared_result(klass: type, bindings: dict[Any, Any]) -> Any:
    for base in klass.__dict__.get("__orig_bases__", klass.__bases__):
        origin = get_origin(base) or base
        args = tuple(
            bindings.get(arg, arg) if isinstance(arg, TypeVar) else arg for arg in get_args(base)
        )
        if origin is Command:
            if args and not isinstance(args[0], TypeVar):
                return args[0]
            continue
        if isinstance(origin, type) and issubclass(origin, Command):
            parameters = getattr(origin, "__parameters__", ())
            found = _declared_result(origin, dict(zip(parameters, args)))
            if found is not _UNRESOLVED:
                return found
    return _UNRESOLVED


@functools.cache
def result_type_of(command_type: type) -> Any:
    """Return the declared result type of a command class.

    ``None`` is returned for ``Command[None]``. Type variables are followed
    through generic intermediate bases, so ``class Sub(Base[int])`` with
    ``class Base(Command[T])`` resolves to ``int``. Raises ``TypeError`` if
    no base parameterises :class:`Command` with a concrete type.
    """
    arg = _declared_result(command_type, {})
    if arg is _UNRESOLVED:
        raise TypeError(f"{command_type.__qualname__} does not declare a Command result type")
    return None if arg in (None, _NONE_TYPE) else arg


def describe_result_type(result_type: Any) -> str:
    if result_type is None:
        return "None"
    return getattr(result_type, "__qualname__", repr(result_type))


__all__ = [
    "Command",
    "NoResultCommand",
    "TResult",
    "describe_result_type",
    "result_type_of",
]
