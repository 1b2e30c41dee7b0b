"""Library exceptions."""

from __future__ import annotations


class RideWiseError(Exception):
    """Base exception for the library."""

    error_type = "unknown"
    default_error_code: str | None = None

    def __init__(
        self,
        message: str | None = None,
        *,
        error_code: str | None = None,
        detail: str | None = None,
        user_message: str | None = None,
    ) -> None:
        text = message or detail or ""
        super().__init__(text)
        self.error_code = error_code or self.default_error_code
        self.detail = detail or message
        self.user_message = user_message


class ValidationError(RideWiseError):
    """Raised when inputs fail validation."""

    error_type = "validation"
    default_error_code = "validation_error"

    def __init__(self, message: str | None = None, *, field: str | None = None, **kwargs) -> None:
        kwargs.setdefault("user_message", message)
        super().__init__(message, **kwargs)
        self.field = field


class NetworkError(RideWiseError):
    """Raised when network communication fails."""

    error_type = "network"
    default_error_code = "network_error"


class AuthError(RideWiseError):
    """Raised when the backend rejects the caller."""

    error_type = "auth"
    default_error_code = "auth_error"


class ApiError(RideWiseError):
    """Raised when the backend returns an error or an unusable payload."""

    error_type = "api"
    default_error_code = "api_error"

    def __init__(self, message: str | None = None, *, status: int | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.status = status


class NotFoundError(ApiError):
    """Raised when the backend reports a missing resource."""

    default_error_code = "not_found"


class RateLimitError(ApiError):
    """Raised when the backend keeps rate limiting a request."""

    default_error_code = "rate_limit"


class StorageError(RideWiseError):
    """Raised when the durable key-value storage cannot be read or written."""

    error_type = "storage"
    default_error_code = "storage_error"
