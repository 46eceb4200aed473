"""
Model Escrow API: project lifecycle routes.
"""

import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import FileResponse

from escrow.exceptions import NotFoundError
from escrow.schemas import ErrorResponse
from escrow.schemas.project import (
    Activity,
    BuyerActionRequest,
    FileInfo,
    Project,
    ProjectCreateRequest,
    ProjectUpdateRequest,
)
from escrow.services.escrow import EscrowService, get_escrow_service

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/projects",
    tags=["projects"],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)


# ═══════════════════════════════════════════════════════
#  Project CRUD
# ═══════════════════════════════════════════════════════

@router.get("", response_model=list[Project])
async def list_projects(
    email: str | None = Query(None, description="Only projects where this email is buyer or seller"),
    service: EscrowService = Depends(get_escrow_service),
):
    """List projects, optionally filtered by participant email."""
    return await service.list_projects(email)


@router.get("/{project_id}", response_model=Project)
async def get_project(project_id: str, service: EscrowService = Depends(get_escrow_service)):
    return await service.get_project(project_id)


@router.post("", response_model=Project, status_code=201)
async def create_project(req: ProjectCreateRequest, service: EscrowService = Depends(get_escrow_service)):
    """Create a new project and record its first activity."""
    return await service.create_project(req)


@router.patch("/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    req: ProjectUpdateRequest,
    service: EscrowService = Depends(get_escrow_service),
):
    """Edit descriptive fields of a project."""
    return await service.update_project(project_id, req)


# ── Deliverable file ────────────────────────────────────

@router.post("/{project_id}/upload", response_model=Project)
async def upload_file(
    project_id: str,
    file: UploadFile = File(...),
    service: EscrowService = Depends(get_escrow_service),
):
    """Upload the 3D model. Reads at most one byte past the size limit."""
    data = await file.read(service.config.max_upload_bytes + 1)
    return await service.upload_file(
        project_id,
        data,
        original_name=file.filename or "",
        mime_type=file.content_type,
        size_bytes=len(data),
    )


@router.get("/{project_id}/file", response_model=FileInfo)
async def get_file(
    project_id: str,
    download: bool = Query(False),
    service: EscrowService = Depends(get_escrow_service),
):
    """File metadata for preview, or the file itself once both parties approved."""
    info = await service.get_file_info(project_id, want_download=download)
    if not service.files.exists(info.file_path):
        raise NotFoundError("File not found on disk")

    if download:
        logger.info("📦 Download of %s for project %s", info.file_name, project_id)
        return FileResponse(
            info.file_path,
            filename=info.file_name or "model",
            media_type=info.file_type,
        )
    return info


# ── Escrow actions ──────────────────────────────────────

@router.post("/{project_id}/deposit", response_model=Project)
async def deposit_payment(project_id: str, service: EscrowService = Depends(get_escrow_service)):
    """Simulate the buyer's escrow deposit."""
    return await service.deposit_payment(project_id)


@router.post("/{project_id}/buyer-action", response_model=Project)
async def buyer_action(
    project_id: str,
    req: BuyerActionRequest,
    service: EscrowService = Depends(get_escrow_service),
):
    """Buyer approves the deliverable or asks for a revision."""
    return await service.buyer_action(project_id, req.action)


@router.post("/{project_id}/seller-approve", response_model=Project)
async def seller_approve(project_id: str, service: EscrowService = Depends(get_escrow_service)):
    return await service.seller_approve(project_id)


@router.get("/{project_id}/activities", response_model=list[Activity])
async def list_project_activities(project_id: str, service: EscrowService = Depends(get_escrow_service)):
    """Activity history of one project, newest first."""
    return await service.list_activities(project_id)
