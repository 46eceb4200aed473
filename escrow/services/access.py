"""
Model Escrow API: download gate for the deliverable file.
"""

from escrow.exceptions import ForbiddenError, NotFoundError
from escrow.schemas.project import BuyerApproval, FileInfo, Project, SellerApproval


def can_download(project: Project) -> bool:
    """Both parties must have approved."""
    return (
        project.buyer_approved == BuyerApproval.APPROVED
        and project.seller_approved == SellerApproval.APPROVED
    )


def file_info(project: Project, want_download: bool = False) -> FileInfo:
    """Metadata for preview; raises ForbiddenError when a download is not yet allowed."""
    if not project.has_file:
        raise NotFoundError("File not found")

    allowed = can_download(project)
    if want_download and not allowed:
        raise ForbiddenError(
            "Download not authorized. Project must be completed by both parties."
        )

    return FileInfo(
        file_name=project.file_name,
        file_size=project.file_size,
        file_type=project.file_type,
        uploaded_at=project.uploaded_at,
        download_allowed=allowed,
        file_path=project.file_path,
    )
