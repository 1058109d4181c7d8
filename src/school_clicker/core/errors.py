"""Error taxonomy shared by services and the HTTP layer.

Every error carries a coarse ``status`` (the RPC-style category used to pick an
HTTP status code) and a machine-readable ``code`` that clients use to decide
which UI to show: a challenge widget, a countdown, or a generic retry prompt.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, ClassVar


class ErrorStatus(str, Enum):
    """Coarse error categories returned to callers."""

    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"

    @property
    def http_status(self) -> int:
        """Return the HTTP status code used for this category."""
        return _HTTP_STATUS[self]


_HTTP_STATUS: dict[ErrorStatus, int] = {
    ErrorStatus.INVALID_ARGUMENT: 400,
    ErrorStatus.UNAUTHENTICATED: 401,
    ErrorStatus.PERMISSION_DENIED: 403,
    ErrorStatus.NOT_FOUND: 404,
    ErrorStatus.ALREADY_EXISTS: 409,
    ErrorStatus.FAILED_PRECONDITION: 412,
    ErrorStatus.RESOURCE_EXHAUSTED: 429,
}

# Machine-readable codes
CAPTCHA_REQUIRED = "CAPTCHA_REQUIRED"
CAPTCHA_INVALID = "CAPTCHA_INVALID"
TEMP_BLOCK = "TEMP_BLOCK"
RATE_LIMITED = "RATE_LIMITED"
INVALID_SESSION = "INVALID_SESSION"
SESSION_EXPIRED = "SESSION_EXPIRED"
SCHOOL_NOT_FOUND = "SCHOOL_NOT_FOUND"
SCHOOL_EXISTS = "SCHOOL_EXISTS"
SCORE_OUT_OF_BOUNDS = "SCORE_OUT_OF_BOUNDS"


class ClickerError(Exception):
    """Base exception for every rejection the service reports to clients."""

    status: ClassVar[ErrorStatus]
    default_code: ClassVar[str]

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        blocked_until: datetime | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.blocked_until = blocked_until

    @property
    def http_status(self) -> int:
        return self.status.http_status

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON error envelope body."""
        payload: dict[str, Any] = {
            "status": self.status.value,
            "code": self.code,
            "message": self.message,
        }
        if self.blocked_until is not None:
            payload["blockedUntil"] = self.blocked_until.isoformat()
        return payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status.value}, code={self.code})"


class InvalidArgumentError(ClickerError):
    """Malformed client input; never retried server-side."""

    status = ErrorStatus.INVALID_ARGUMENT
    default_code = ErrorStatus.INVALID_ARGUMENT.value


class UnauthenticatedError(ClickerError):
    """Missing, unknown or expired session."""

    status = ErrorStatus.UNAUTHENTICATED
    default_code = INVALID_SESSION


class CaptchaInvalidError(ClickerError):
    """A supplied challenge token failed verification."""

    status = ErrorStatus.PERMISSION_DENIED
    default_code = CAPTCHA_INVALID

    def __init__(self, message: str = "Captcha verification failed.") -> None:
        super().__init__(message)


class NotFoundError(ClickerError):
    status = ErrorStatus.NOT_FOUND
    default_code = SCHOOL_NOT_FOUND


class AlreadyExistsError(ClickerError):
    status = ErrorStatus.ALREADY_EXISTS
    default_code = SCHOOL_EXISTS


class FailedPreconditionError(ClickerError):
    """Integrity rejection; nothing was mutated."""

    status = ErrorStatus.FAILED_PRECONDITION
    default_code = SCORE_OUT_OF_BOUNDS


class CaptchaRequiredError(FailedPreconditionError):
    """Friction is active and the request carried no challenge token."""

    default_code = CAPTCHA_REQUIRED

    def __init__(self, message: str = "Captcha verification required.") -> None:
        super().__init__(message)


class ResourceExhaustedError(ClickerError):
    """Throttling rejection; expected and frequent."""

    status = ErrorStatus.RESOURCE_EXHAUSTED
    default_code = RATE_LIMITED


class FrictionEscalatedError(ResourceExhaustedError):
    """The session rate limit tripped and a challenge is now required."""

    default_code = CAPTCHA_REQUIRED

    def __init__(self, message: str = "Too many clicks - complete the captcha to continue.") -> None:
        super().__init__(message)


class TemporarilyBlockedError(ResourceExhaustedError):
    """The session is hard-blocked until ``blocked_until``."""

    default_code = TEMP_BLOCK

    def __init__(self, blocked_until: datetime, message: str | None = None) -> None:
        super().__init__(
            message or "Session temporarily blocked - try again later.",
            blocked_until=blocked_until,
        )
