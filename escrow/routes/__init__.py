"""
API Routes: health plus the project and activity routers.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from escrow.routes.activity import activity_router
from escrow.routes.projects import router as project_router
from escrow.schemas import HealthResponse
from escrow.services.escrow import EscrowService, get_escrow_service

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["system"])
async def health(service: EscrowService = Depends(get_escrow_service)):
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        storage=service.store.name,
    )


router.include_router(project_router)
router.include_router(activity_router)
