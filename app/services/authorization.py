"""
Request Authorization

Turns an inbound request into an admitted AuthContext or a 401/429.

    UNAUTHENTICATED -> KEY_EXTRACTED -> VALIDATED -> QUOTA_CHECKED -> ADMITTED
                    \\               \\                           \\
                     `-> REJECTED     `-> REJECTED                  `-> REJECTED

1. The key is taken from the X-API-Key header, the apiKey query parameter
   or the apiKey field of a JSON or form body, in that order. The first
   non-blank value wins.
2. The validator authenticates it and loads the owner.
3. The quota enforcer checks the owner's snapshot (authorize). Over-quota
   callers are turned away before the request body is even validated.
4. Once the handler has a valid request, admit() reserves one slot
   atomically. A request that passed the check but loses the race for
   the last slot is rejected like any other over-quota request.

Requests rejected by body validation never reach step 4, so they take no
slot and leave no usage entry.

The FastAPI dependency wrapping steps 1-3 lives in app.dependencies.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from fastapi import Request
from sqlalchemy.orm import Session

from app.config import get_settings
from app.exceptions import InvalidApiKey, MissingApiKey, QuotaExceeded
from app.models import User
from app.services import quota
from app.services.api_key_validator import validate
from app.utils import mask_key

logger = logging.getLogger(__name__)
settings = get_settings()

# Query parameter and body field carrying the key
API_KEY_FIELD = "apiKey"


class AuthState(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    KEY_EXTRACTED = "key_extracted"
    VALIDATED = "validated"
    QUOTA_CHECKED = "quota_checked"
    ADMITTED = "admitted"
    REJECTED = "rejected"


@dataclass
class AuthContext:
    """What an admitted request knows about its caller."""

    user: User
    key_id: int
    key_display: str
    presented_key: str
    rate_limit: int | None = None
    state: AuthState = AuthState.ADMITTED


def _clean(value) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


async def _key_from_body(request: Request) -> str | None:
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None
        if isinstance(body, dict):
            return _clean(body.get(API_KEY_FIELD))
        return None

    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        return _clean(form.get(API_KEY_FIELD))

    return None


async def extract_api_key(request: Request) -> str | None:
    """
    Find the API key in a request.

    Returns:
        The first non-blank key found, or None
    """
    key = _clean(request.headers.get(settings.api_key_header))
    if key:
        return key

    key = _clean(request.query_params.get(API_KEY_FIELD))
    if key:
        return key

    if request.method in ("POST", "PUT", "PATCH"):
        return await _key_from_body(request)
    return None


def _reject(state: AuthState, key_display: str, error: Exception) -> Exception:
    logger.info(f"Request rejected at {state} for {key_display}: {error.__class__.__name__}")
    return error


def authenticate(db: Session, presented_key: str | None) -> AuthContext:
    """
    Authenticate a presented key without touching the quota.

    Raises:
        MissingApiKey: no key was presented
        InvalidApiKey: the key did not validate
    """
    if not presented_key:
        raise _reject(AuthState.UNAUTHENTICATED, "-", MissingApiKey())

    key_display = mask_key(presented_key)

    result = validate(db, presented_key)
    if not result.valid:
        raise _reject(AuthState.KEY_EXTRACTED, key_display, InvalidApiKey())

    return AuthContext(
        user=result.identity,
        key_id=result.key_id,
        key_display=key_display,
        presented_key=presented_key,
        rate_limit=result.rate_limit,
        state=AuthState.VALIDATED,
    )


def _quota_exceeded(user: User, today: date) -> QuotaExceeded:
    return QuotaExceeded(
        current=user.requests_used_on(today),
        limit=user.daily_limit,
        reset_at=quota.next_reset_at(today),
    )


def authorize(db: Session, presented_key: str | None, today: date | None = None) -> AuthContext:
    """
    Authenticate a presented key and check the owner's quota.

    Nothing is reserved yet: the handler calls admit() once its input has
    been validated.

    Args:
        db: Database session
        presented_key: Key found by extract_api_key(), or None
        today: Quota day; defaults to settings.quota_today()

    Returns:
        AuthContext in state QUOTA_CHECKED

    Raises:
        MissingApiKey: no key was presented
        InvalidApiKey: the key did not validate
        QuotaExceeded: the owner's daily limit is used up
    """
    auth = authenticate(db, presented_key)
    today = today or settings.quota_today()

    decision = quota.check_and_admit(auth.user, today)
    if not decision.admitted:
        raise _reject(AuthState.VALIDATED, auth.key_display, _quota_exceeded(auth.user, today))

    auth.state = AuthState.QUOTA_CHECKED
    return auth


def admit(db: Session, auth: AuthContext, today: date | None = None) -> AuthContext:
    """
    Reserve one quota slot for a checked request.

    Raises:
        QuotaExceeded: another request took the last slot first
    """
    if auth.state == AuthState.ADMITTED:
        return auth

    user = auth.user
    today = today or settings.quota_today()

    if quota.reserve(db, user.id, today):
        logger.debug(f"Admitted {auth.key_display} for user {user.id}")
        auth.state = AuthState.ADMITTED
        return auth

    # The snapshot was stale: the last slot went to a concurrent request
    db.refresh(user)
    auth.state = AuthState.REJECTED
    raise _reject(AuthState.QUOTA_CHECKED, auth.key_display, _quota_exceeded(user, today))
