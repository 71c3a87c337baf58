"""Domain error taxonomy mapped onto HTTP status codes."""

from __future__ import annotations


class AppError(Exception):
    """Base error carrying a client-safe message and HTTP status."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class AuthenticationRequired(AppError):
    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class InternalError(AppError):
    """Unexpected failure; the message is generic and never carries internals."""

    status_code = 500


class TableAllocationError(InternalError):
    default_message = "Failed to create tables"


def is_missing_relation(exc: BaseException) -> bool:
    """Return whether a storage error means the table has not been provisioned yet."""
    message = str(getattr(exc, "orig", None) or exc).lower()
    if "no such table" in message:
        return True
    return "relation" in message and "does not exist" in message


def is_unique_violation(exc: BaseException) -> bool:
    """Return whether a storage error is a uniqueness-constraint violation."""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None) or getattr(exc, "code", None)
    if code is not None and "23505" in str(code):
        return True
    message = str(orig or exc).lower()
    return "duplicate" in message or "unique constraint" in message
