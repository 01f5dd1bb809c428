"""Cooperative cancellation tokens.

A :class:`CancellationTokenSource` owns the signal; the read-only
:class:`CancellationToken` it hands out is threaded through every dispatcher,
source reader and transformation handler. The core checks the token at its
defined checkpoints (start of command dispatch, before reading a source,
before building each transformation, before each record transform) and
otherwise passes it downward untouched.

Example::

    source = CancellationTokenSource()
    task = asyncio.create_task(container.run(dataflow, source.token))
    ...
    source.cancel()   # next checkpoint raises OperationCancelledError
"""

from __future__ import annotations

import threading

from shipwright.core.errors import OperationCancelledError


class CancellationToken:
    """Read-only view of a cancellation signal.

    Tokens are safe to share between threads and event loops; the
    underlying flag is a ``threading.Event``.
    """

    __slots__ = ("_event",)

    def __init__(self, event: threading.Event | None = None) -> None:
        self._event = event if event is not None else threading.Event()

    @classmethod
    def none(cls) -> CancellationToken:
        """A token that is never cancelled."""
        return cls()

    @classmethod
    def cancelled(cls) -> CancellationToken:
        """A token whose cancellation has already been requested."""
        event = threading.Event()
        event.set()
        return cls(event)

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise :class:`OperationCancelledError` if cancellation was requested."""
        if self._event.is_set():
            raise OperationCancelledError()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancellation_requested})"


class CancellationTokenSource:
    """Owner of a cancellation signal."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._token = CancellationToken(self._event)

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()


def ensure_token(token: CancellationToken | None) -> CancellationToken:
    """Normalise an optional token argument."""
    return token if token is not None else CancellationToken.none()


__all__ = [
    "CancellationToken",
    "CancellationTokenSource",
    "ensure_token",
]
