"""Per-session locks: one writer per session id, sessions independent."""

from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator
import asyncio


class KeyedLock:
    """
    A lazily created asyncio.Lock per key.

    Usage:
        locks = KeyedLock()
        async with locks.hold(session_id):
            ...

    A key's lock is dropped once nobody holds or waits for it.
    """

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
