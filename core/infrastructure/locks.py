"""
Keyed in-process locks.

Serializes coroutines that share a key (a license id) while letting
different keys proceed independently. Locks are scoped to the running
event loop; serialization across threads and processes is left to the
store (row locks and unique constraints).
"""

import asyncio
import contextlib
import weakref
from typing import Any, AsyncIterator


class KeyedLock:
    """Registry of asyncio locks keyed by an arbitrary hashable value."""

    def __init__(self):
        """Initialize the registry."""
        self._locks: "weakref.WeakValueDictionary[Any, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, key: Any) -> asyncio.Lock:
        # asyncio locks are bound to one event loop
        scoped_key = (id(asyncio.get_running_loop()), key)
        lock = self._locks.get(scoped_key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[scoped_key] = lock
        return lock

    @contextlib.asynccontextmanager
    async def hold(self, key: Any) -> AsyncIterator[None]:
        """
        Hold the lock for ``key``.

        Usage:
            async with locks.hold(license_id):
                ...
        """
        lock = self._lock_for(key)
        async with lock:
            yield
