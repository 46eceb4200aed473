"""
Tests for the lifecycle decisions: pure functions, no store.
"""

from datetime import datetime, timezone

import pytest

from escrow.exceptions import EscrowValidationError, InvalidTransitionError
from escrow.schemas.project import (
    ActivityType,
    BuyerAction,
    BuyerApproval,
    PaymentStatus,
    ProjectStatus,
    SellerApproval,
)
from escrow.services import lifecycle
from escrow.services.lifecycle import StoredFile
from tests.conftest import make_project

MAX_BYTES = 50 * 1024 * 1024
ALLOWED = ["stl", "step", "obj", "ply"]


class TestDeposit:
    def test_holds_payment(self):
        t = lifecycle.deposit_payment(make_project())
        assert t.changes["payment_status"] == PaymentStatus.HELD
        assert t.status == ProjectStatus.PAYMENT_DEPOSITED
        assert t.activity_type == ActivityType.PAYMENT
        assert t.description == "Escrow payment of $100.00 deposited"

    def test_repeat_deposit_keeps_held(self):
        t = lifecycle.deposit_payment(make_project(payment_status="held", status="payment_deposited"))
        assert t.changes["payment_status"] == PaymentStatus.HELD

    def test_released_payment_cannot_go_back(self):
        project = make_project(payment_status="released", status="under_review")
        with pytest.raises(InvalidTransitionError):
            lifecycle.deposit_payment(project)

    def test_completed_is_terminal(self):
        project = make_project(status="completed", payment_status="released")
        with pytest.raises(InvalidTransitionError) as exc_info:
            lifecycle.deposit_payment(project)
        assert "completed" in str(exc_info.value)


class TestValidateUpload:
    @pytest.mark.parametrize("name", ["part.stl", "PART.STL", "a.step", "mesh.obj", "scan.ply"])
    def test_allowed_extensions(self, name):
        lifecycle.validate_upload(name, 2_000_000, allowed_extensions=ALLOWED, max_bytes=MAX_BYTES)

    @pytest.mark.parametrize("name", ["part.stp", "model.fbx", "notes.txt", "stl", ""])
    def test_rejected_extensions(self, name):
        with pytest.raises(EscrowValidationError) as exc_info:
            lifecycle.validate_upload(name, 10, allowed_extensions=ALLOWED, max_bytes=MAX_BYTES)
        assert "files are allowed" in str(exc_info.value)

    def test_size_limit_is_inclusive(self):
        lifecycle.validate_upload("a.stl", MAX_BYTES, allowed_extensions=ALLOWED, max_bytes=MAX_BYTES)
        with pytest.raises(EscrowValidationError):
            lifecycle.validate_upload("a.stl", MAX_BYTES + 1, allowed_extensions=ALLOWED, max_bytes=MAX_BYTES)


class TestRecordUpload:
    def test_sets_file_metadata(self):
        stored = StoredFile("part.stl", 2048, "model/stl", "/tmp/uploads/file-1.stl")
        when = datetime(2025, 2, 1, tzinfo=timezone.utc)
        t = lifecycle.record_upload(make_project(status="payment_deposited"), stored, when)

        assert t.status == ProjectStatus.FILE_UPLOADED
        assert t.changes["file_name"] == "part.stl"
        assert t.changes["file_size"] == 2048
        assert t.changes["file_path"] == "/tmp/uploads/file-1.stl"
        assert t.changes["uploaded_at"] == when
        assert t.description == 'File "part.stl" uploaded'
        assert t.activity_type == ActivityType.UPLOAD

    def test_reupload_after_revision_request(self):
        project = make_project(status="revision_requested", buyer_approved="revision_requested")
        stored = StoredFile("v2.obj", 10, "model/obj", "/tmp/v2.obj")
        t = lifecycle.record_upload(project, stored, datetime.now(timezone.utc))
        assert t.status == ProjectStatus.FILE_UPLOADED

    def test_no_upload_after_completion(self):
        with pytest.raises(InvalidTransitionError):
            lifecycle.check_upload_allowed(make_project(status="completed"))


class TestBuyerAction:
    def test_approve(self):
        t = lifecycle.buyer_action(make_project(status="file_uploaded"), BuyerAction.APPROVE)
        assert t.changes == {
            "buyer_approved": BuyerApproval.APPROVED,
            "status": ProjectStatus.UNDER_REVIEW,
        }
        assert t.activity_type == ActivityType.REVIEW
        assert t.description == "Buyer approved the project"

    def test_request_revision(self):
        t = lifecycle.buyer_action(make_project(status="file_uploaded"), BuyerAction.REQUEST_REVISION)
        assert t.changes["buyer_approved"] == BuyerApproval.REVISION_REQUESTED
        assert t.status == ProjectStatus.REVISION_REQUESTED
        assert t.description == "Buyer requested revisions"

    def test_approval_after_seller_does_not_complete(self):
        project = make_project(status="under_review", seller_approved="true", payment_status="held")
        t = lifecycle.buyer_action(project, BuyerAction.APPROVE)
        assert t.status == ProjectStatus.UNDER_REVIEW
        assert "payment_status" not in t.changes


class TestSellerApprove:
    def test_completes_when_buyer_approved(self):
        project = make_project(status="under_review", buyer_approved="true", payment_status="held")
        t = lifecycle.seller_approve(project)
        assert t.status == ProjectStatus.COMPLETED
        assert t.changes["payment_status"] == PaymentStatus.RELEASED
        assert t.changes["seller_approved"] == SellerApproval.APPROVED
        assert t.activity_type == ActivityType.COMPLETION
        assert t.description == "Project completed - payment released to seller"

    @pytest.mark.parametrize("buyer", ["false", "revision_requested"])
    def test_waits_for_buyer(self, buyer):
        project = make_project(status="file_uploaded", buyer_approved=buyer, payment_status="held")
        t = lifecycle.seller_approve(project)
        assert t.status == ProjectStatus.UNDER_REVIEW
        assert "payment_status" not in t.changes
        assert t.activity_type == ActivityType.APPROVAL
        assert t.description == "Seller approved the project completion"

    def test_completed_project_rejected(self):
        project = make_project(
            status="completed", buyer_approved="true", seller_approved="true", payment_status="released",
        )
        with pytest.raises(InvalidTransitionError):
            lifecycle.seller_approve(project)
