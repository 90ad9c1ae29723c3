"""
Domain errors raised by the service layer.

Every failure the core can report belongs to one ErrorKind. The transport
layer maps kinds to HTTP statuses; the services never build HTTP responses
themselves.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Abstract error categories shared by every service."""

    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    GONE = "gone"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    INFRASTRUCTURE = "infrastructure"


class DomainError(Exception):
    """Base error for domain failures."""

    kind: ErrorKind = ErrorKind.VALIDATION
    code = "error"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.code, "kind": self.kind.value, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND
    code = "not_found"


class UnauthorizedError(DomainError):
    kind = ErrorKind.UNAUTHORIZED
    code = "unauthorized"


class GoneError(DomainError):
    kind = ErrorKind.GONE
    code = "gone"

    def __init__(self, message: str, *, reason: str, **kwargs: Any) -> None:
        details = dict(kwargs.pop("details", None) or {})
        details.setdefault("reason", reason)
        super().__init__(message, details=details, **kwargs)
        self.reason = reason


class ConflictError(DomainError):
    kind = ErrorKind.CONFLICT
    code = "conflict"


class ValidationError(DomainError):
    kind = ErrorKind.VALIDATION
    code = "validation_error"


class InfrastructureError(DomainError):
    """Store or cache unavailable; callers may retry."""

    kind = ErrorKind.INFRASTRUCTURE
    code = "infrastructure_error"


class InvalidCredentialsError(UnauthorizedError):
    """Login failure. Same message whatever the underlying cause."""

    code = "invalid_credentials"

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


# Refresh token ledger errors


class TokenInvalidError(UnauthorizedError):
    code = "token_invalid"


class TokenRevokedError(UnauthorizedError):
    code = "token_revoked"


class TokenExpiredError(GoneError):
    code = "token_expired"

    def __init__(self, message: str = "Refresh token has expired") -> None:
        super().__init__(message, reason="expired")
