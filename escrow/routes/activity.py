"""
Model Escrow API: dashboard activity feed.
"""

from fastapi import APIRouter, Depends, Query

from escrow.schemas.project import Activity
from escrow.services.escrow import EscrowService, get_escrow_service

activity_router = APIRouter(prefix="/activities", tags=["activity"])


@activity_router.get("/recent", response_model=list[Activity])
async def list_recent_activities(
    limit: int | None = Query(None, ge=1, le=100, description="Defaults to RECENT_ACTIVITY_LIMIT"),
    service: EscrowService = Depends(get_escrow_service),
):
    """Most recent activity entries across all projects, newest first."""
    return await service.list_recent_activities(limit)
