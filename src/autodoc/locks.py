"""Per-title mutual exclusion for the schema store and artifact directories."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class TitleLocks:
    """
    Registry of asyncio locks keyed by schema title.

    Tasks working on the same title run one at a time; different titles
    never wait on each other. A lock is dropped once nobody holds or
    waits for it, so the registry only grows with in-flight titles.

    Usage:
        locks = TitleLocks()
        async with locks.hold("orders-service"):
            ...
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, title: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(title, asyncio.Lock())
        self._users[title] = self._users.get(title, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[title] -= 1
            if self._users[title] == 0:
                del self._users[title]
                del self._locks[title]

    def __len__(self) -> int:
        return len(self._locks)

    def is_locked(self, title: str) -> bool:
        lock = self._locks.get(title)
        return lock is not None and lock.locked()
