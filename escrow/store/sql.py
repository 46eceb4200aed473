"""
Model Escrow API: SQLAlchemy-backed store.

Repository calls made inside ``transaction()`` share that transaction's
session and are committed once at the end; calls made outside it each get a
short-lived session of their own.
"""

import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from enum import Enum
from typing import Any, AsyncIterator

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from escrow.exceptions import EscrowValidationError
from escrow.models.project import ActivityRow, ProjectRow, UserRow
from escrow.schemas.project import (
    Activity, ActivityType, BuyerApproval, PaymentStatus, Project,
    ProjectCreateRequest, ProjectStatus, SellerApproval, User,
)
from escrow.store.base import ActivityLog, EscrowStore, ProjectRepository, UserRepository, check_fields
from escrow.utils import new_id, utcnow

logger = logging.getLogger(__name__)


def _column_values(data: dict[str, Any]) -> dict[str, Any]:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in data.items()}


class SqlProjectRepository(ProjectRepository):
    def __init__(self, store: "SqlStore"):
        self._store = store

    async def get(self, project_id: str) -> Project | None:
        async with self._store.session() as session:
            row = await session.get(ProjectRow, project_id)
            return Project.model_validate(row) if row else None

    async def list_by_participant(self, email: str) -> list[Project]:
        async with self._store.session() as session:
            result = await session.execute(
                select(ProjectRow)
                .where(or_(ProjectRow.buyer_email == email, ProjectRow.seller_email == email))
                .order_by(ProjectRow.created_at.asc())
            )
            return [Project.model_validate(r) for r in result.scalars().all()]

    async def list_all(self) -> list[Project]:
        async with self._store.session() as session:
            result = await session.execute(select(ProjectRow).order_by(ProjectRow.created_at.asc()))
            return [Project.model_validate(r) for r in result.scalars().all()]

    async def create(self, data: ProjectCreateRequest) -> Project:
        now = utcnow()
        row = ProjectRow(
            id=new_id(),
            **_column_values(data.model_dump()),
            status=ProjectStatus.CREATED.value,
            payment_status=PaymentStatus.PENDING.value,
            buyer_approved=BuyerApproval.PENDING.value,
            seller_approved=SellerApproval.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        async with self._store.session() as session:
            session.add(row)
            await session.flush()
            return Project.model_validate(row)

    async def update(self, project_id: str, changes: dict[str, Any]) -> Project | None:
        check_fields(changes)
        async with self._store.session() as session:
            row = await session.get(ProjectRow, project_id)
            if row is None:
                return None
            for key, value in _column_values(changes).items():
                setattr(row, key, value)
            row.updated_at = utcnow()
            await session.flush()
            return Project.model_validate(row)


class SqlActivityLog(ActivityLog):
    def __init__(self, store: "SqlStore"):
        self._store = store

    async def append(self, project_id: str, description: str, type: ActivityType) -> Activity:
        row = ActivityRow(
            id=new_id(),
            project_id=project_id,
            description=description,
            type=ActivityType(type).value,
            created_at=utcnow(),
        )
        async with self._store.session() as session:
            session.add(row)
            await session.flush()
            return Activity.model_validate(row)

    async def list_by_project(self, project_id: str) -> list[Activity]:
        async with self._store.session() as session:
            result = await session.execute(
                select(ActivityRow)
                .where(ActivityRow.project_id == project_id)
                .order_by(ActivityRow.created_at.desc())
            )
            return [Activity.model_validate(r) for r in result.scalars().all()]

    async def list_recent(self, limit: int = 10) -> list[Activity]:
        async with self._store.session() as session:
            result = await session.execute(
                select(ActivityRow).order_by(ActivityRow.created_at.desc()).limit(limit)
            )
            return [Activity.model_validate(r) for r in result.scalars().all()]


class SqlUserRepository(UserRepository):
    def __init__(self, store: "SqlStore"):
        self._store = store

    async def get(self, user_id: str) -> User | None:
        async with self._store.session() as session:
            row = await session.get(UserRow, user_id)
            return User.model_validate(row) if row else None

    async def get_by_username(self, username: str) -> User | None:
        async with self._store.session() as session:
            result = await session.execute(select(UserRow).where(UserRow.username == username))
            row = result.scalar_one_or_none()
            return User.model_validate(row) if row else None

    async def create(self, username: str, password: str) -> User:
        if await self.get_by_username(username):
            raise EscrowValidationError(f"Username {username!r} is already taken")
        row = UserRow(id=new_id(), username=username, password=password)
        async with self._store.session() as session:
            session.add(row)
            await session.flush()
            return User.model_validate(row)


class SqlStore(EscrowStore):
    name = "sql"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._factory = session_factory
        self._active: ContextVar[AsyncSession | None] = ContextVar(
            f"escrow_sql_session_{id(self)}", default=None,
        )
        self.projects = SqlProjectRepository(self)
        self.activities = SqlActivityLog(self)
        self.users = SqlUserRepository(self)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """The enclosing transaction's session, or a fresh auto-committing one."""
        active = self._active.get()
        if active is not None:
            yield active
            return

        async with self._factory() as session:
            yield session
            await session.commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._active.get() is not None:
            yield
            return

        async with self._factory() as session:
            token = self._active.set(session)
            try:
                yield
                await session.commit()
            except BaseException:
                await session.rollback()
                logger.warning("Store transaction rolled back")
                raise
            finally:
                self._active.reset(token)

    async def close(self) -> None:
        bind = self._factory.kw.get("bind")
        if bind is not None:
            await bind.dispose()
