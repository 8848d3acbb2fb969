"""Per-item asyncio locks serialising read-modify-write on one stock item."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class ItemLockRegistry:
    """Hands out one lock per stock item id, created on first use."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def lock_for(self, item_id: str) -> asyncio.Lock:
        lock = self._locks.get(item_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[item_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, item_id: str) -> AsyncIterator[None]:
        async with self.lock_for(item_id):
            yield

    def __len__(self) -> int:
        return len(self._locks)


_registry: ItemLockRegistry | None = None


def get_item_locks() -> ItemLockRegistry:
    """Get the process-wide lock registry."""
    global _registry
    if _registry is None:
        _registry = ItemLockRegistry()
    return _registry
