"""
Per-subscription mutual exclusion for webhook ingestion.

Events for the same subscription reference run their read-modify-write one at
a time; different references never wait on each other. The compare-and-swap on
the subscription version stays the guarantee across processes.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.holders = 0


class SubscriptionLockRegistry:
    """Keyed asyncio locks, dropped once no coroutine holds or waits on them"""

    def __init__(self):
        self._entries: Dict[str, _Entry] = {}

    @asynccontextmanager
    async def hold(self, subscription_reference: str) -> AsyncIterator[None]:
        entry = self._entries.get(subscription_reference)
        if entry is None:
            entry = self._entries[subscription_reference] = _Entry()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                self._entries.pop(subscription_reference, None)

    def __len__(self) -> int:
        return len(self._entries)
