class EscrowError(Exception):
    """Base exception for the escrow service."""

    status_code = 500


class NotFoundError(EscrowError):
    """Raised when a project (or its file) does not exist."""

    status_code = 404


class EscrowValidationError(EscrowError):
    """Raised when a payload or upload is rejected before any state change."""

    status_code = 400


class InvalidTransitionError(EscrowValidationError):
    """Raised when a lifecycle action is not allowed from the current state."""

    status_code = 409

    def __init__(self, action: str, status: str, reason: str):
        self.action = action
        self.status = status
        super().__init__(f"Cannot {action} a project that is {status}: {reason}")


class ForbiddenError(EscrowError):
    """Raised when a download is requested without dual approval."""

    status_code = 403


class InternalFailure(EscrowError):
    """Raised when the store fails unexpectedly during a transition."""

    pass
