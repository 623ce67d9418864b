"""
Domain exceptions raised by the service layer.

Each error carries the HTTP status and machine-readable code the API handler
in app.main renders, so services never need to know about FastAPI.
"""
from typing import Optional


class HangoutError(Exception):
    """Base exception for application-level errors."""

    status_code: int = 400
    code: str = "BAD_REQUEST"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class InvalidArgumentError(HangoutError):
    """Malformed input, e.g. an empty group name or an out-of-range slider value."""

    status_code = 400
    code = "INVALID_ARGUMENT"


class NotFoundError(HangoutError):
    """Referenced entity does not exist."""

    status_code = 404
    code = "NOT_FOUND"


class ForbiddenError(HangoutError):
    """Acting user lacks rights for the action."""

    status_code = 403
    code = "FORBIDDEN"


class ConflictError(HangoutError):
    """Uniqueness or state-invariant violation."""

    status_code = 409
    code = "CONFLICT"


class AlreadyProcessedError(HangoutError):
    """A status transition was attempted on something no longer pending/active."""

    status_code = 409
    code = "ALREADY_PROCESSED"


class InvalidStateError(HangoutError):
    """Operation is not allowed in the entity's current state."""

    status_code = 409
    code = "INVALID_STATE"


class UpstreamUnavailableError(HangoutError):
    """The place-search collaborator failed or timed out."""

    status_code = 503
    code = "UPSTREAM_UNAVAILABLE"
