"""
Model Escrow API: in-process store.

Plain dicts keyed by id. Transactions keep a journal of the prior value of
every key they touch and put those values back if the block raises, so a
rollback never clobbers writes made concurrently on other projects.
"""

import itertools
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any, AsyncIterator

from escrow.exceptions import EscrowValidationError
from escrow.schemas.project import Activity, ActivityType, Project, ProjectCreateRequest, User
from escrow.store.base import ActivityLog, EscrowStore, ProjectRepository, UserRepository, check_fields
from escrow.utils import new_id, utcnow

_MISSING = object()


class _Journal:
    def __init__(self) -> None:
        self.entries: list[tuple[dict, str, Any]] = []

    def record(self, table: dict, key: str) -> None:
        self.entries.append((table, key, table.get(key, _MISSING)))

    def rollback(self) -> None:
        for table, key, prior in reversed(self.entries):
            if prior is _MISSING:
                table.pop(key, None)
            else:
                table[key] = prior
        self.entries.clear()


class MemoryProjectRepository(ProjectRepository):
    def __init__(self, store: "MemoryStore"):
        self._store = store
        self._rows: dict[str, Project] = {}

    async def get(self, project_id: str) -> Project | None:
        return self._rows.get(project_id)

    async def list_by_participant(self, email: str) -> list[Project]:
        return [
            p for p in self._rows.values()
            if p.buyer_email == email or p.seller_email == email
        ]

    async def list_all(self) -> list[Project]:
        return list(self._rows.values())

    async def create(self, data: ProjectCreateRequest) -> Project:
        now = utcnow()
        project = Project(id=new_id(), **data.model_dump(), created_at=now, updated_at=now)
        self._store.write(self._rows, project.id, project)
        return project

    async def update(self, project_id: str, changes: dict[str, Any]) -> Project | None:
        check_fields(changes)
        current = self._rows.get(project_id)
        if current is None:
            return None
        updated = Project.model_validate({
            **current.model_dump(),
            **changes,
            "id": current.id,
            "created_at": current.created_at,
            "updated_at": utcnow(),
        })
        self._store.write(self._rows, project_id, updated)
        return updated


class MemoryActivityLog(ActivityLog):
    def __init__(self, store: "MemoryStore"):
        self._store = store
        # id -> (insertion sequence, activity); the sequence breaks timestamp ties
        self._rows: dict[str, tuple[int, Activity]] = {}
        self._seq = itertools.count()

    async def append(self, project_id: str, description: str, type: ActivityType) -> Activity:
        activity = Activity(
            id=new_id(),
            project_id=project_id,
            description=description,
            type=type,
            created_at=utcnow(),
        )
        self._store.write(self._rows, activity.id, (next(self._seq), activity))
        return activity

    def _newest_first(self, rows) -> list[Activity]:
        ordered = sorted(rows, key=lambda r: (r[1].created_at, r[0]), reverse=True)
        return [activity for _, activity in ordered]

    async def list_by_project(self, project_id: str) -> list[Activity]:
        return self._newest_first(r for r in self._rows.values() if r[1].project_id == project_id)

    async def list_recent(self, limit: int = 10) -> list[Activity]:
        return self._newest_first(self._rows.values())[:limit]


class MemoryUserRepository(UserRepository):
    def __init__(self, store: "MemoryStore"):
        self._store = store
        self._rows: dict[str, User] = {}

    async def get(self, user_id: str) -> User | None:
        return self._rows.get(user_id)

    async def get_by_username(self, username: str) -> User | None:
        return next((u for u in self._rows.values() if u.username == username), None)

    async def create(self, username: str, password: str) -> User:
        if await self.get_by_username(username):
            raise EscrowValidationError(f"Username {username!r} is already taken")
        user = User(id=new_id(), username=username, password=password)
        self._store.write(self._rows, user.id, user)
        return user


class MemoryStore(EscrowStore):
    name = "memory"

    def __init__(self) -> None:
        self._journal: ContextVar[_Journal | None] = ContextVar(
            f"escrow_memory_journal_{id(self)}", default=None,
        )
        self.projects = MemoryProjectRepository(self)
        self.activities = MemoryActivityLog(self)
        self.users = MemoryUserRepository(self)

    def write(self, table: dict, key: str, value: Any) -> None:
        journal = self._journal.get()
        if journal is not None:
            journal.record(table, key)
        table[key] = value

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._journal.get() is not None:
            yield
            return

        journal = _Journal()
        token = self._journal.set(journal)
        try:
            yield
        except BaseException:
            journal.rollback()
            raise
        finally:
            self._journal.reset(token)
