"""
Model Escrow API: lifecycle facade.

Sequences every request as lock -> load -> decide -> write. The project
update and its activity entry are written inside one store transaction, so a
failed action leaves the project exactly as it was.
"""

import logging
from typing import Callable

from escrow.config import Settings, settings
from escrow.exceptions import (
    EscrowError,
    EscrowValidationError,
    InternalFailure,
    NotFoundError,
)
from escrow.schemas.project import (
    Activity,
    ActivityType,
    BuyerAction,
    FileInfo,
    Project,
    ProjectCreateRequest,
    ProjectUpdateRequest,
)
from escrow.services import access, lifecycle
from escrow.services.file_storage import DiskFileStorage
from escrow.services.lifecycle import StoredFile, Transition
from escrow.services.locking import ProjectLocks
from escrow.store import EscrowStore, build_store
from escrow.utils import utcnow

logger = logging.getLogger(__name__)


class EscrowService:
    """Boundary operations of the escrow workflow."""

    def __init__(
        self,
        store: EscrowStore,
        files: DiskFileStorage,
        config: Settings = settings,
    ):
        self.store = store
        self.files = files
        self.config = config
        self.locks = ProjectLocks()

    async def _require(self, project_id: str) -> Project:
        project = await self.store.projects.get(project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")
        return project

    # ── Reads ───────────────────────────────────────────

    async def list_projects(self, email: str | None = None) -> list[Project]:
        if email:
            return await self.store.projects.list_by_participant(email)
        return await self.store.projects.list_all()

    async def get_project(self, project_id: str) -> Project:
        return await self._require(project_id)

    async def list_activities(self, project_id: str) -> list[Activity]:
        return await self.store.activities.list_by_project(project_id)

    async def list_recent_activities(self, limit: int | None = None) -> list[Activity]:
        return await self.store.activities.list_recent(limit or self.config.recent_activity_limit)

    async def get_file_info(self, project_id: str, want_download: bool = False) -> FileInfo:
        project = await self._require(project_id)
        return access.file_info(project, want_download)

    # ── Writes ──────────────────────────────────────────

    async def create_project(self, req: ProjectCreateRequest) -> Project:
        try:
            async with self.store.transaction():
                project = await self.store.projects.create(req)
                await self.store.activities.append(
                    project.id, lifecycle.created_description(project), ActivityType.CREATED,
                )
        except EscrowError:
            raise
        except Exception as e:
            logger.error("❌ Project creation failed: %s", e)
            raise InternalFailure("Failed to create project") from e

        logger.info(f"✅ Project created: {project.id} ({project.title}) for {project.buyer_email}")
        return project

    async def update_project(self, project_id: str, req: ProjectUpdateRequest) -> Project:
        changes = req.changes()
        async with self.locks.hold(project_id):
            if not changes:
                return await self._require(project_id)
            try:
                updated = await self.store.projects.update(project_id, changes)
            except Exception as e:
                logger.error("❌ Update of project %s failed: %s", project_id, e)
                raise InternalFailure("Failed to update project") from e
            if updated is None:
                raise NotFoundError(f"Project {project_id} not found")

        logger.info(f"✏️ Project {project_id} updated: {', '.join(sorted(changes))}")
        return updated

    async def deposit_payment(self, project_id: str) -> Project:
        return await self._transition(project_id, lifecycle.deposit_payment)

    async def buyer_action(self, project_id: str, action: BuyerAction) -> Project:
        return await self._transition(project_id, lambda p: lifecycle.buyer_action(p, action))

    async def seller_approve(self, project_id: str) -> Project:
        return await self._transition(project_id, lifecycle.seller_approve)

    async def upload_file(
        self,
        project_id: str,
        data: bytes,
        original_name: str,
        mime_type: str | None,
        size_bytes: int,
    ) -> Project:
        """Validate, store the bytes, then record the metadata on the project."""
        try:
            lifecycle.validate_upload(
                original_name,
                size_bytes,
                allowed_extensions=self.config.allowed_extensions,
                max_bytes=self.config.max_upload_bytes,
            )
        except EscrowValidationError as e:
            logger.warning("⚠️ Upload %r for project %s rejected: %s", original_name, project_id, e)
            raise

        async with self.locks.hold(project_id):
            project = await self._require(project_id)
            try:
                lifecycle.check_upload_allowed(project)
            except EscrowValidationError as e:
                logger.warning("⚠️ Project %s: %s", project_id, e)
                raise

            try:
                path = await self.files.save(data, original_name)
            except OSError as e:
                logger.error("❌ Could not store upload for project %s: %s", project_id, e)
                raise InternalFailure("File upload failed") from e

            stored = StoredFile(
                file_name=original_name,
                file_size=size_bytes,
                file_type=mime_type or "application/octet-stream",
                file_path=path,
            )
            try:
                return await self._commit(project, lifecycle.record_upload(project, stored, utcnow()))
            except Exception:
                await self.files.delete(path)
                raise

    # ── Internals ───────────────────────────────────────

    async def _transition(self, project_id: str, decide: Callable[[Project], Transition]) -> Project:
        async with self.locks.hold(project_id):
            project = await self._require(project_id)
            try:
                transition = decide(project)
            except EscrowValidationError as e:
                logger.warning("⚠️ Project %s: %s", project_id, e)
                raise
            return await self._commit(project, transition)

    async def _commit(self, project: Project, transition: Transition) -> Project:
        try:
            async with self.store.transaction():
                updated = await self.store.projects.update(project.id, transition.changes)
                if updated is None:
                    raise NotFoundError(f"Project {project.id} not found")
                await self.store.activities.append(
                    project.id, transition.description, transition.activity_type,
                )
        except EscrowError:
            raise
        except Exception as e:
            logger.error("❌ %s on project %s failed: %s", transition.action, project.id, e)
            raise InternalFailure(f"Failed to apply {transition.action}") from e

        logger.info(
            "🔁 Project %s %s: %s -> %s",
            project.id, transition.action, project.status.value, updated.status.value,
        )
        return updated


# Singleton instance
_service: EscrowService | None = None


def get_escrow_service() -> EscrowService:
    """FastAPI dependency; builds the service from settings on first use."""
    global _service
    if _service is None:
        _service = EscrowService(build_store(settings), DiskFileStorage(settings.upload_dir))
    return _service


def set_escrow_service(service: EscrowService | None) -> None:
    global _service
    _service = service
