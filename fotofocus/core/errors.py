"""
Error taxonomy shared by services and routers.

Every failure a caller can observe is an AppError subclass carrying a stable
machine-readable ``kind``, the HTTP status it maps to and a human message.
The app factory renders them as ``{"error": kind, "message": message}``.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    kind = "error"
    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    kind = "validation_error"
    status_code = 400
    default_message = "Invalid request"


class WeakPassword(ValidationError):
    kind = "weak_password"
    default_message = "Password is too short"


class Unauthenticated(AppError):
    kind = "unauthenticated"
    status_code = 401
    default_message = "Missing token"


class InvalidToken(Unauthenticated):
    kind = "invalid_token"
    default_message = "Invalid token"


class InvalidCredentials(Unauthenticated):
    kind = "invalid_credentials"
    default_message = "Invalid credentials"


class Forbidden(AppError):
    kind = "forbidden"
    status_code = 403
    default_message = "Not allowed"


class NotFound(AppError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    kind = "conflict"
    status_code = 409
    default_message = "Conflict"


class AlreadyRegistered(Conflict):
    kind = "already_registered"
    default_message = "Email already exists"


class Throttled(AppError):
    kind = "throttled"
    status_code = 429
    default_message = "Too many requests. Please wait and try again."


class TooManyAttempts(Throttled):
    kind = "too_many_attempts"
    default_message = "Too many attempts. Please register again."


class Expired(AppError):
    kind = "expired"
    status_code = 400
    default_message = "Code expired. Please register again."


class InvalidCode(AppError):
    kind = "invalid_code"
    status_code = 400
    default_message = "Invalid verification code."


class InvalidOrExpiredToken(AppError):
    kind = "invalid_or_expired_token"
    status_code = 400
    default_message = "Token is invalid or expired"


class DeliveryFailed(AppError):
    kind = "delivery_failed"
    status_code = 502
    default_message = "Failed to deliver message"


class StorageError(AppError):
    kind = "storage_error"
    status_code = 500
    default_message = "Storage failure"


class DeletionFailed(StorageError):
    kind = "deletion_failed"
    default_message = "Failed to delete"
