"""Project lifecycle decisions.

Pure functions: given the current project and a requested action, compute
the field changes (including the new status) and the activity entry to
record, or raise if the action is not allowed. No store access, no clock
reads except where a timestamp is passed in.

States: created -> payment_deposited -> file_uploaded -> under_review ->
revision_requested | completed. A revision request loops back to a new
upload; completed is terminal.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePath
from typing import Any, Iterable

from escrow.exceptions import EscrowValidationError, InvalidTransitionError
from escrow.schemas.project import (
    ActivityType,
    BuyerAction,
    BuyerApproval,
    PaymentStatus,
    Project,
    ProjectStatus,
    SellerApproval,
)


@dataclass(frozen=True)
class Transition:
    """Outcome of a permitted lifecycle action."""

    action: str
    changes: dict[str, Any]
    activity_type: ActivityType
    description: str

    @property
    def status(self) -> ProjectStatus:
        return self.changes["status"]


@dataclass(frozen=True)
class StoredFile:
    """Metadata of an upload after the storage collaborator has written it."""

    file_name: str
    file_size: int
    file_type: str
    file_path: str


def created_description(project: Project) -> str:
    return f'Project "{project.title}" created'


def _ensure_open(project: Project, action: str) -> None:
    if project.status == ProjectStatus.COMPLETED:
        raise InvalidTransitionError(action, project.status.value, "completed projects are final")


def _advance_payment(project: Project, target: PaymentStatus, action: str) -> PaymentStatus:
    """Payment only moves forward: pending < held < released."""
    current = project.payment_status
    if target.rank < current.rank:
        raise InvalidTransitionError(action, project.status.value, f"payment is already {current.value}")
    return target


def deposit_payment(project: Project) -> Transition:
    action = "deposit payment for"
    _ensure_open(project, action)
    return Transition(
        action="deposit",
        changes={
            "payment_status": _advance_payment(project, PaymentStatus.HELD, action),
            "status": ProjectStatus.PAYMENT_DEPOSITED,
        },
        activity_type=ActivityType.PAYMENT,
        description=f"Escrow payment of ${project.amount} deposited",
    )


def validate_upload(
    file_name: str,
    size_bytes: int,
    *,
    allowed_extensions: Iterable[str],
    max_bytes: int,
) -> None:
    """Reject a deliverable by extension or size before anything is written."""
    allowed = {ext.lower().lstrip(".") for ext in allowed_extensions}
    ext = PurePath(file_name or "").suffix.lower().lstrip(".")
    if ext not in allowed:
        names = ", ".join(sorted(e.upper() for e in allowed))
        raise EscrowValidationError(f"Only {names} files are allowed")
    if size_bytes > max_bytes:
        raise EscrowValidationError(
            f"File is too large ({size_bytes} bytes, limit {max_bytes} bytes)"
        )


def check_upload_allowed(project: Project) -> None:
    _ensure_open(project, "upload a file to")


def record_upload(project: Project, stored: StoredFile, uploaded_at: datetime) -> Transition:
    check_upload_allowed(project)
    return Transition(
        action="upload",
        changes={
            "file_name": stored.file_name,
            "file_size": stored.file_size,
            "file_type": stored.file_type,
            "file_path": stored.file_path,
            "uploaded_at": uploaded_at,
            "status": ProjectStatus.FILE_UPLOADED,
        },
        activity_type=ActivityType.UPLOAD,
        description=f'File "{stored.file_name}" uploaded',
    )


def buyer_action(project: Project, action: BuyerAction) -> Transition:
    _ensure_open(project, "review")
    if action == BuyerAction.APPROVE:
        changes = {
            "buyer_approved": BuyerApproval.APPROVED,
            "status": ProjectStatus.UNDER_REVIEW,
        }
        description = "Buyer approved the project"
    else:
        changes = {
            "buyer_approved": BuyerApproval.REVISION_REQUESTED,
            "status": ProjectStatus.REVISION_REQUESTED,
        }
        description = "Buyer requested revisions"
    return Transition(
        action=f"buyer_{action.value}",
        changes=changes,
        activity_type=ActivityType.REVIEW,
        description=description,
    )


def seller_approve(project: Project) -> Transition:
    """Seller sign-off; completes the project only if the buyer already approved.

    A buyer approval that arrives after the seller's does not complete the
    project on its own.
    """
    action = "approve"
    _ensure_open(project, action)
    changes: dict[str, Any] = {"seller_approved": SellerApproval.APPROVED}

    if project.buyer_approved == BuyerApproval.APPROVED:
        changes["status"] = ProjectStatus.COMPLETED
        changes["payment_status"] = _advance_payment(project, PaymentStatus.RELEASED, action)
        return Transition(
            action="seller_approve",
            changes=changes,
            activity_type=ActivityType.COMPLETION,
            description="Project completed - payment released to seller",
        )

    changes["status"] = ProjectStatus.UNDER_REVIEW
    return Transition(
        action="seller_approve",
        changes=changes,
        activity_type=ActivityType.APPROVAL,
        description="Seller approved the project completion",
    )
