"""
Domain Exceptions

Every failure the authorization and accounting layer can report maps to
one exception class. Each carries the HTTP status and the machine-readable
error code used by the JSON handler registered in main.py:

    {"success": false, "error": "<code>", "message": "<text>", ...}

Messages are deliberately generic where detail would help an attacker:
InvalidCredentials never says whether the email or the password was wrong,
and InvalidApiKey never says whether the key was unknown or revoked.
"""

from datetime import datetime
from typing import Any


class ShardoxError(Exception):
    """Base class for errors rendered as the JSON error envelope."""

    status_code: int = 500
    error: str = "internal_error"
    message: str = "An internal error occurred."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    @property
    def headers(self) -> dict[str, str] | None:
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.error, "message": self.message}


class DuplicateIdentity(ShardoxError):
    status_code = 409
    error = "duplicate_identity"
    message = "Username or email already registered"


class InvalidCredentials(ShardoxError):
    status_code = 401
    error = "invalid_credentials"
    message = "Invalid email or password"

    @property
    def headers(self) -> dict[str, str]:
        return {"WWW-Authenticate": "Bearer"}


class MissingApiKey(ShardoxError):
    status_code = 401
    error = "missing_api_key"
    message = "API key is required"

    @property
    def headers(self) -> dict[str, str]:
        return {"WWW-Authenticate": "ApiKey"}


class InvalidApiKey(ShardoxError):
    status_code = 401
    error = "invalid_api_key"
    message = "Invalid or expired API key"

    @property
    def headers(self) -> dict[str, str]:
        return {"WWW-Authenticate": "ApiKey"}


class QuotaExceeded(ShardoxError):
    """Daily request ceiling reached; carries enough detail to back off."""

    status_code = 429
    error = "quota_exceeded"
    message = "Daily API limit exceeded"

    def __init__(self, current: int, limit: int, reset_at: datetime) -> None:
        super().__init__()
        self.current = current
        self.limit = limit
        self.reset_at = reset_at

    @property
    def retry_after(self) -> int:
        remaining = (self.reset_at - datetime.now(self.reset_at.tzinfo)).total_seconds()
        return max(1, int(remaining))

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Retry-After": str(self.retry_after),
            "X-Quota-Limit": str(self.limit),
            "X-Quota-Used": str(self.current),
        }

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            current=self.current,
            limit=self.limit,
            reset_at=self.reset_at.isoformat(),
        )
        return data


class NotFound(ShardoxError):
    status_code = 404
    error = "not_found"
    message = "Resource not found"


class SlugTaken(ShardoxError):
    status_code = 409
    error = "slug_taken"
    message = "Custom slug already in use"


class ShortUrlGone(ShardoxError):
    status_code = 410
    error = "short_url_gone"
    message = "Short URL has expired"


class StorageUnavailable(ShardoxError):
    status_code = 503
    error = "storage_unavailable"
    message = "A database error occurred. Please try again later."


class ShortUrlPasswordRequired(ShardoxError):
    status_code = 401
    error = "password_required"
    message = "This short URL is password protected"
