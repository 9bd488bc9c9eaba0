"""
Rate Limiting Service

Per-client-IP request throttling with slowapi. This protects the service
itself (e.g. brute-force logins); it is separate from the per-identity
daily quota enforced in app.services.quota.

Rate Limit Tiers:
=================
- Default (every route): settings.rate_limit_default, "100 per 15 minutes"
- Registration: 5/minute
- Login: 10/minute
- Key management writes: settings.rate_limit_write
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from app.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

REGISTER_LIMIT = "5/minute"
LOGIN_LIMIT = "10/minute"


def get_client_ip(request: Request) -> str:
    """
    Get the client IP address.

    Honours X-Forwarded-For and X-Real-IP so limits apply to the real
    client behind a proxy.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs; first is the client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def create_limiter() -> Limiter:
    """
    Create and configure the rate limiter.

    Storage defaults to in-process memory; point RATE_LIMIT_STORAGE_URI
    at a shared backend when running several workers.
    """
    limiter = Limiter(
        key_func=get_client_ip,
        default_limits=[settings.rate_limit_default],
        storage_uri=settings.rate_limit_storage_uri,
        strategy="fixed-window",
        enabled=settings.rate_limit_enabled,
        headers_enabled=False,
    )

    logger.info(
        f"Rate limiter initialized - enabled: {settings.rate_limit_enabled}, "
        f"default: {settings.rate_limit_default}"
    )

    return limiter


limiter = create_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render slowapi's RateLimitExceeded in the service's error envelope."""
    limit_detail = str(exc.detail)

    response = JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please slow down.",
            "detail": limit_detail,
        },
    )
    response.headers["Retry-After"] = "60"
    response.headers["X-RateLimit-Limit"] = limit_detail

    logger.warning(f"Rate limit exceeded for {get_client_ip(request)}: {limit_detail}")

    return response
