"""Per-item serialization of updates within one process."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class ItemLockRegistry:
    """One ``asyncio.Lock`` per item id, dropped once nobody holds or waits on it.

    Updates to different items never contend. Cross-process safety comes from
    the row lock taken when the item is read.
    """

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}

    @asynccontextmanager
    async def hold(self, item_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(item_id, asyncio.Lock())
        self._users[item_id] = self._users.get(item_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[item_id] -= 1
            if self._users[item_id] == 0:
                del self._users[item_id]
                del self._locks[item_id]

    def __len__(self) -> int:
        return len(self._locks)
