"""
Model Escrow API: Pydantic request/response schemas.
"""

from pydantic import BaseModel

from escrow.schemas.project import (  # noqa: F401
    Activity,
    ActivityType,
    BuyerAction,
    BuyerActionRequest,
    BuyerApproval,
    CreatedBy,
    FileInfo,
    PaymentStatus,
    Project,
    ProjectCreateRequest,
    ProjectStatus,
    ProjectUpdateRequest,
    SellerApproval,
    User,
)


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "1.0.0"
    timestamp: str | None = None
    storage: str = "memory"


class ErrorResponse(BaseModel):
    message: str
