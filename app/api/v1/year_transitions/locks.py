import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict
from uuid import UUID

from app.core.exceptions import ConflictError


class TransitionLockRegistry:
    """
    In-process mutual exclusion for year transitions, one lock per school.
    A second transition for a school already in flight fails fast instead of queueing.
    Across processes the school row's version column rejects the later commit.
    """

    def __init__(self) -> None:
        self._locks: Dict[UUID, asyncio.Lock] = {}

    def is_locked(self, school_id: UUID) -> bool:
        lock = self._locks.get(school_id)
        return bool(lock and lock.locked())

    @asynccontextmanager
    async def hold(self, school_id: UUID) -> AsyncIterator[None]:
        lock = self._locks.setdefault(school_id, asyncio.Lock())
        if lock.locked():
            raise ConflictError("A year transition is already in progress for this school")
        async with lock:
            yield


transition_locks = TransitionLockRegistry()
