"""
Per-group write serialization.

Multi-step write sequences (replace splits, settlement, cascade delete) hold
the lock of the group they touch; different groups never wait on each other.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional


class GroupLocks:
    """Registry of advisory ``asyncio.Lock`` objects keyed by group id."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, group_id: Optional[str]) -> AsyncIterator[None]:
        # Personal (group-less) transactions have nothing to serialize against
        if group_id is None:
            yield
            return

        lock = self._locks.setdefault(group_id, asyncio.Lock())
        self._waiters[group_id] = self._waiters.get(group_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[group_id] -= 1
            if self._waiters[group_id] == 0:
                del self._waiters[group_id]
                self._locks.pop(group_id, None)


group_locks = GroupLocks()
