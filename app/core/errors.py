"""Service-layer exceptions. Each one maps to an HTTP status and a stable error code."""

from enum import Enum
from typing import Any


class ServiceError(Exception):
    """Base class for errors raised by the credential, token and directory services."""

    status_code: int = 500
    error_code: str = "internal"

    def __init__(self, message: str, detail: dict[str, Any] | None = None) -> None:
        self.message = message
        self.detail = detail or {}
        super().__init__(message)


class ValidationError(ServiceError):
    """Request or entity fields are missing or malformed (400)."""

    status_code = 400
    error_code = "validation_error"


class InvalidRole(ServiceError):
    """Role name does not exist (400)."""

    status_code = 400
    error_code = "invalid_role"


class Unauthenticated(ServiceError):
    """No usable credentials were presented (401)."""

    status_code = 401
    error_code = "unauthenticated"


class RejectionReason(str, Enum):
    INVALID = "invalid"
    REVOKED = "revoked"
    EXPIRED = "expired"


class TokenRejected(Unauthenticated):
    """Bearer token failed verification; reason says why."""

    def __init__(self, reason: RejectionReason, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(
            message or _REJECTION_MESSAGES[reason],
            detail={"reason": reason.value},
        )


_REJECTION_MESSAGES = {
    RejectionReason.INVALID: "Invalid token.",
    RejectionReason.REVOKED: "Token has been revoked.",
    RejectionReason.EXPIRED: "Token expired.",
}


class Forbidden(ServiceError):
    """Authenticated, but the role does not permit the operation (403)."""

    status_code = 403
    error_code = "forbidden"


class NotFound(ServiceError):
    status_code = 404
    error_code = "not_found"


class DuplicateEmail(ServiceError):
    """Another user already owns this email (409)."""

    status_code = 409
    error_code = "duplicate_email"


class StoreUnavailable(ServiceError):
    """Database timed out or the connection failed. Not retried; the caller may retry (503)."""

    status_code = 503
    error_code = "store_unavailable"


class InternalError(ServiceError):
    status_code = 500
    error_code = "internal"
