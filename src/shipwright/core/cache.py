"""
Async memoizing cache.

Maps a key to a value produced by an expensive asynchronous factory and
guarantees the factory runs at most once per key, even when many callers
ask for the same key before the first production has finished.

Manifesto:
    Connection factories and lookup results are expensive to produce and
    are requested concurrently by every worker of a dataflow run. Without a
    single in-flight entry per key, a burst of first requests would open a
    burst of connections.

    - **Exactly once:** one factory invocation per key per attempt
    - **Shared outcome:** every waiter sees the same value or the same error
    - **Failures are not sticky:** a failed attempt is evicted when it
      completes, so the next request starts a fresh attempt

Architecture:
    ::

        AsyncCache[K, V]
          _entries: dict[K, asyncio.Future[V]]   (guarded by threading.Lock)

          get_or_add(key, factory)
            ├── entry exists  → await shield(entry)
            └── no entry      → entry = ensure_future(factory(key))
                                 on failure: evict entry (if still current)

Examples:
    >>> cache: AsyncCache[str, Connection] = AsyncCache()
    >>> conn = await cache.get_or_add("orders-db", open_connection)

Guardrails:
    - A waiter that is cancelled does not cancel the shared production;
      the value is still cached for the remaining and future callers.
    - Entries live on the event loop that created them.

Tags:
    cache, memoization, asyncio, concurrency, shipwright-core

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Awaitable, Callable, Hashable
from functools import partial
from typing import Generic, TypeVar

from shipwright.core.errors import InvalidArgumentError

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class AsyncCache(Generic[K, V]):
    """Thread-safe cache for values that must be obtained asynchronously."""

    def __init__(self) -> None:
        self._entries: dict[K, asyncio.Future[V]] = {}
        self._lock = threading.Lock()

    async def get_or_add(self, key: K, factory: Callable[[K], Awaitable[V]]) -> V:
        """Return the value for ``key``, producing it with ``factory`` if absent.

        Args:
            key: Cache key.
            factory: Async callable invoked with the key when no entry exists.

        Returns:
            The existing value, the value of the in-flight production, or the
            value of a new production started by this call.

        Raises:
            InvalidArgumentError: If ``key`` or ``factory`` is ``None``.
            Exception: Whatever the factory raised, for every waiter of
                the failed attempt.
        """
        if key is None:
            raise InvalidArgumentError("key")
        if factory is None:
            raise InvalidArgumentError("factory")

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = asyncio.ensure_future(self._produce(key, factory))
                entry.add_done_callback(partial(self._evict_failed, key))
                self._entries[key] = entry

        return await asyncio.shield(entry)

    @staticmethod
    async def _produce(key: K, factory: Callable[[K], Awaitable[V]]) -> V:
        return await factory(key)

    def _evict_failed(self, key: K, entry: asyncio.Future[V]) -> None:
        if not entry.cancelled() and entry.exception() is None:
            return
        with self._lock:
            if self._entries.get(key) is entry:
                del self._entries[key]

    def invalidate(self, key: K) -> bool:
        """Drop the entry for ``key``. In-flight waiters are unaffected."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["AsyncCache"]
