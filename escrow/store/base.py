"""
Model Escrow API: repository interfaces.

The lifecycle core only talks to these; `MemoryStore` and `SqlStore` are the
two concrete backends.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any

from escrow.schemas.project import Activity, ActivityType, Project, ProjectCreateRequest, User


_IMMUTABLE_FIELDS = {"id", "created_at", "updated_at"}


def check_fields(changes: dict[str, Any]) -> None:
    """Reject keys that are not mutable Project fields."""
    unknown = set(changes) - (set(Project.model_fields) - _IMMUTABLE_FIELDS)
    if unknown:
        raise ValueError(f"Cannot update project fields: {', '.join(sorted(unknown))}")


class ProjectRepository(ABC):

    @abstractmethod
    async def get(self, project_id: str) -> Project | None: ...

    @abstractmethod
    async def list_by_participant(self, email: str) -> list[Project]:
        """Projects where ``email`` is the buyer or the seller."""

    @abstractmethod
    async def list_all(self) -> list[Project]: ...

    @abstractmethod
    async def create(self, data: ProjectCreateRequest) -> Project:
        """Insert with a fresh id, workflow defaults and no file metadata."""

    @abstractmethod
    async def update(self, project_id: str, changes: dict[str, Any]) -> Project | None:
        """Shallow-merge ``changes`` and bump updated_at. None for an unknown id."""


class ActivityLog(ABC):

    @abstractmethod
    async def append(self, project_id: str, description: str, type: ActivityType) -> Activity: ...

    @abstractmethod
    async def list_by_project(self, project_id: str) -> list[Activity]:
        """Newest first."""

    @abstractmethod
    async def list_recent(self, limit: int = 10) -> list[Activity]:
        """Newest first across all projects, at most ``limit`` entries."""


class UserRepository(ABC):

    @abstractmethod
    async def get(self, user_id: str) -> User | None: ...

    @abstractmethod
    async def get_by_username(self, username: str) -> User | None: ...

    @abstractmethod
    async def create(self, username: str, password: str) -> User:
        """Raises EscrowValidationError if the username is taken."""


class EscrowStore(ABC):
    """Groups the repositories behind one unit of work."""

    name = "abstract"

    projects: ProjectRepository
    activities: ActivityLog
    users: UserRepository

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Every write inside the block lands together or not at all.

        A nested call joins the enclosing transaction.
        """

    async def close(self) -> None:
        pass
