"""Per-project locking.

Every mutating lifecycle action holds its project's lock for the whole
read-decide-write sequence, so two actions on the same project never
interleave. Actions on different projects do not contend. Locks for ids
nobody is waiting on are discarded.
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager


class ProjectLocks:
    """Keyed asyncio mutex."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, project_id: str) -> AsyncGenerator[None, None]:
        """Context manager serializing work on ``project_id``.

        Example:
            async with locks.hold(project.id):
                ...  # read, decide, write
        """
        lock = self._locks.setdefault(project_id, asyncio.Lock())
        self._holders[project_id] = self._holders.get(project_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[project_id] -= 1
            if not self._holders[project_id]:
                del self._holders[project_id]
                del self._locks[project_id]

    def is_locked(self, project_id: str) -> bool:
        lock = self._locks.get(project_id)
        return bool(lock and lock.locked())

    def __len__(self) -> int:
        return len(self._locks)
