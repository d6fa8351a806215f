"""Domain errors raised by services and stores.

Each error carries the ``ErrorCode`` and HTTP status it is reported with;
``terramail.main`` turns them into ``ErrorResponse`` bodies.
"""
from __future__ import annotations

from terramail.models.error_code import ErrorCode


class TerramailError(Exception):
    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailure(TerramailError):
    code = ErrorCode.BAD_REQUEST
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(TerramailError):
    code = ErrorCode.UNAUTHORIZED
    status_code = 401
    default_message = "Invalid credentials"


class Forbidden(TerramailError):
    code = ErrorCode.FORBIDDEN
    status_code = 403
    default_message = "Forbidden"


class NotFound(TerramailError):
    code = ErrorCode.NOT_FOUND
    status_code = 404
    default_message = "Not found"


class Conflict(TerramailError):
    code = ErrorCode.CONFLICT
    status_code = 409
    default_message = "Conflict"


class RateLimited(TerramailError):
    code = ErrorCode.TOO_MANY_REQUESTS
    status_code = 429
    default_message = "Too many failed login attempts, try again later"


class StoreUnavailable(TerramailError):
    code = ErrorCode.SERVICE_UNAVAILABLE
    status_code = 503
    default_message = "Storage is unavailable"


__all__ = [
    "TerramailError",
    "ValidationFailure",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "Conflict",
    "RateLimited",
    "StoreUnavailable",
]
