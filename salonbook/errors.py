"""Error taxonomy raised by the registry, ledger and session layers.

Each class carries the HTTP status and the short ``error`` code that the route
handlers put in the response envelope.
"""
from __future__ import annotations


class ApiError(Exception):
    status_code = 500
    error = "internal_error"
    default_message = "Unexpected error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, object]:
        return {"success": False, "error": self.error, "message": self.message}


class ValidationError(ApiError):
    status_code = 400
    error = "invalid_payload"
    default_message = "Invalid request payload"


class AuthError(ApiError):
    status_code = 401
    error = "unauthorized"
    default_message = "Authentication required"


class NoToken(AuthError):
    default_message = "Access denied. No token provided."


class TokenExpired(AuthError):
    default_message = "Token expired. Please login again."


class InvalidToken(AuthError):
    default_message = "Invalid token."


class Forbidden(ApiError):
    status_code = 403
    error = "forbidden"
    default_message = "You do not have permission to perform this action"


class NotFound(ApiError):
    status_code = 404
    error = "not_found"
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = 400
    error = "conflict"
    default_message = "Request conflicts with the current state"


class DuplicateEmail(ConflictError):
    default_message = "User already exists"


class RoleMismatch(ConflictError):
    default_message = "Access denied: role mismatch"


class InvalidCredential(ConflictError):
    default_message = "Invalid password"


class NotCancellable(ConflictError):
    default_message = "This booking cannot be cancelled"


class OwnSalonBooking(ConflictError):
    default_message = "Owners cannot book their own salons"


class InvalidStatus(ApiError):
    status_code = 400
    error = "invalid_status"
    default_message = "Invalid status"
