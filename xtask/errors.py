"""Service-level exceptions, each mapped to one HTTP status."""

from __future__ import annotations


class XTaskError(Exception):
    """Base exception for request failures surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class BadRequestError(XTaskError):
    """Missing or invalid fields, bad enum values, date ordering violations."""

    status_code = 400


class UnauthorizedError(XTaskError):
    """Missing, invalid or expired token, or bad login credentials."""

    status_code = 401


class ForbiddenError(XTaskError):
    """Role or ownership rule violation."""

    status_code = 403


class NotFoundError(XTaskError):
    """Unknown user, task or parent reference."""

    status_code = 404


class ConflictError(XTaskError):
    """Duplicate email or a reference that would be orphaned."""

    status_code = 409


class RateLimitedError(XTaskError):
    """Too many failed login attempts."""

    status_code = 429

    def __init__(self, message: str, retry_after: int = 0):
        self.retry_after = retry_after
        super().__init__(message)
