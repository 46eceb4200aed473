"""
Model Escrow API: project, activity and user schemas.

Domain records are frozen; they travel between the store, the lifecycle
engine and the routes unchanged. On the wire every field is camelCase and
every enum keeps its original string value.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


# ── Enums ───────────────────────────────────────────────
class ProjectStatus(str, Enum):
    CREATED = "created"
    PAYMENT_DEPOSITED = "payment_deposited"
    FILE_UPLOADED = "file_uploaded"
    UNDER_REVIEW = "under_review"
    REVISION_REQUESTED = "revision_requested"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    HELD = "held"
    RELEASED = "released"

    @property
    def rank(self) -> int:
        return _PAYMENT_ORDER.index(self)


_PAYMENT_ORDER = [PaymentStatus.PENDING, PaymentStatus.HELD, PaymentStatus.RELEASED]


class BuyerApproval(str, Enum):
    PENDING = "false"
    APPROVED = "true"
    REVISION_REQUESTED = "revision_requested"


class SellerApproval(str, Enum):
    PENDING = "false"
    APPROVED = "true"


class CreatedBy(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"


class ActivityType(str, Enum):
    CREATED = "created"
    PAYMENT = "payment"
    UPLOAD = "upload"
    REVIEW = "review"
    APPROVAL = "approval"
    COMPLETION = "completion"


class BuyerAction(str, Enum):
    APPROVE = "approve"
    REQUEST_REVISION = "request_revision"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ── Domain records ──────────────────────────────────────
class Project(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    amount: Decimal
    currency: str = "USD"
    buyer_email: str
    seller_email: Optional[str] = None
    created_by: CreatedBy
    deadline: Optional[datetime] = None

    # File metadata, all null until the first upload
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    file_type: Optional[str] = None
    file_path: Optional[str] = None
    uploaded_at: Optional[datetime] = None

    status: ProjectStatus = ProjectStatus.CREATED
    payment_status: PaymentStatus = PaymentStatus.PENDING
    buyer_approved: BuyerApproval = BuyerApproval.PENDING
    seller_approved: SellerApproval = SellerApproval.PENDING

    created_at: datetime
    updated_at: datetime

    @property
    def has_file(self) -> bool:
        return self.file_path is not None


class Activity(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    project_id: str
    description: str
    type: ActivityType
    created_at: datetime


class User(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    password: str = Field(exclude=True)


class FileInfo(CamelModel):
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    file_type: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    download_allowed: bool = False
    file_path: str = Field(exclude=True)


# ── Requests ────────────────────────────────────────────
class ProjectCreateRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field(..., max_length=5000)
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    currency: str = Field("USD", min_length=3, max_length=3)
    buyer_email: EmailStr
    seller_email: Optional[EmailStr] = None
    created_by: CreatedBy
    deadline: Optional[datetime] = None

    @field_validator("amount")
    @classmethod
    def _two_places(cls, value: Decimal) -> Decimal:
        return value.quantize(Decimal("0.01"))


class ProjectUpdateRequest(CamelModel):
    """Descriptive fields only; workflow fields move through lifecycle actions."""

    title: Optional[str] = Field(None, min_length=1, max_length=300)
    description: Optional[str] = Field(None, max_length=5000)
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    buyer_email: Optional[EmailStr] = None
    seller_email: Optional[EmailStr] = None
    deadline: Optional[datetime] = None

    @field_validator("amount")
    @classmethod
    def _two_places(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        return value.quantize(Decimal("0.01")) if value is not None else None

    @model_validator(mode="after")
    def _required_stay_set(self) -> "ProjectUpdateRequest":
        for name in ("title", "description", "amount", "currency", "buyer_email"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be cleared")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class BuyerActionRequest(BaseModel):
    action: BuyerAction
