"""
Domain errors raised by services and translated to HTTP responses in main.py.

Every error carries the status code and the user-facing message the API
returns as ``{"success": false, "error": message}``.
"""

from typing import Optional


class AppError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class InvalidFormat(ValidationError):
    default_message = "Invalid phone number format. Must be in E.164 format (e.g., +1234567890)"


class InvalidCodeFormat(ValidationError):
    default_message = "Invalid verification code format. Must be 6 digits."


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Invalid or expired token"


class PermissionDeniedError(AppError):
    status_code = 403
    default_message = "You are not allowed to perform this action"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConcurrencyError(AppError):
    """Optimistic-concurrency retries were exhausted; the write was not applied."""
    status_code = 409
    default_message = "The resource was modified concurrently, please retry"


class InvalidTransitionError(AppError):
    status_code = 409
    default_message = "Invalid status transition"


class ProviderError(AppError):
    """Failure reported by a third-party provider (Twilio)."""
    status_code = 500
    default_message = "Verification provider error"

    def __init__(self, message: Optional[str] = None, code: Optional[int] = None):
        self.code = code
        super().__init__(message)


class InvalidPhoneNumber(ProviderError):
    status_code = 400
    default_message = "Invalid phone number"


class RateLimited(ProviderError):
    status_code = 400
    default_message = "Max send attempts reached. Please try again later."


class InvalidCode(ProviderError):
    status_code = 400
    default_message = "Invalid verification code"
