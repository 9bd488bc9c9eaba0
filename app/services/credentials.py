"""
Credential Store

Registers identities, verifies their credentials, and issues and revokes
API keys.

Security Features:
=================
1. Passwords and keys are hashed with bcrypt before storage
2. Plain keys are only returned once, from issue_api_key()
3. Failed logins raise one generic error whatever the cause
4. Revoked keys are kept (is_active=False, revoked_at set) for auditing
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.exceptions import DuplicateIdentity, InvalidCredentials, NotFound
from app.models import APIKey, User
from app.services.security import dummy_verify, hash_secret, verify_secret
from app.utils import utcnow

logger = logging.getLogger(__name__)
settings = get_settings()

# Every issued key starts with this marker
KEY_PREFIX = "shd_"

# Characters of the key stored in clear for lookup ("shd_" + 12 hex)
LOOKUP_PREFIX_LENGTH = 16


@dataclass(frozen=True)
class IssuedApiKey:
    """Result of issuing a key. plaintext_key is never available again."""

    id: int
    name: str
    plaintext_key: str
    key_prefix: str
    created_at: datetime


def generate_api_key() -> tuple[str, str, str]:
    """
    Generate a new API key.

    Returns:
        Tuple of (full_key, key_hash, key_prefix)

    Example:
        >>> key, key_hash, prefix = generate_api_key()
        >>> len(key)
        68
        >>> key.startswith(prefix)
        True
    """
    full_key = f"{KEY_PREFIX}{secrets.token_hex(32)}"
    return full_key, hash_secret(full_key), full_key[:LOOKUP_PREFIX_LENGTH]


# =============================================================================
# Identities
# =============================================================================

def create_identity(db: Session, username: str, email: str, password: str) -> User:
    """
    Register a new identity.

    Uniqueness is checked against every stored identity, active or not.
    Nothing is written when the check fails.

    Raises:
        DuplicateIdentity: username or email already registered
    """
    username = username.lower()
    email = email.lower()

    stmt = select(User.id).where(or_(User.email == email, User.username == username))
    if db.execute(stmt).first() is not None:
        raise DuplicateIdentity()

    user = User(
        username=username,
        email=email,
        hashed_password=hash_secret(password),
        daily_limit=settings.default_daily_limit,
        requests_today=0,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration
        db.rollback()
        raise DuplicateIdentity() from e
    db.refresh(user)

    logger.info(f"Registered identity {user.id} ({username})")
    return user


def verify_credentials(db: Session, email: str, password: str) -> User:
    """
    Check an email/password pair and return the matching active identity.

    Raises:
        InvalidCredentials: unknown email, inactive identity or wrong password
    """
    stmt = select(User).where(User.email == email.lower())
    user = db.execute(stmt).scalar_one_or_none()

    if user is None:
        dummy_verify()
        raise InvalidCredentials()

    if not verify_secret(password, user.hashed_password) or not user.is_active:
        raise InvalidCredentials()

    user.last_login_at = utcnow()
    db.commit()
    db.refresh(user)
    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


# =============================================================================
# API Keys
# =============================================================================

def issue_api_key(db: Session, user_id: int, name: str) -> IssuedApiKey:
    """
    Create a new API key for an identity.

    Only the bcrypt hash and the lookup prefix are stored. The returned
    plaintext is the only copy and must be shown to the caller now.
    """
    plain_key, key_hash, key_prefix = generate_api_key()

    api_key = APIKey(
        user_id=user_id,
        name=name,
        key_hash=key_hash,
        key_prefix=key_prefix,
        is_active=True,
        rate_limit=settings.default_key_rate_limit,
        allowed_endpoints=["*"],
        usage_count=0,
    )
    db.add(api_key)
    db.commit()
    db.refresh(api_key)

    logger.info(f"Issued API key {key_prefix}... for user {user_id}")

    return IssuedApiKey(
        id=api_key.id,
        name=api_key.name,
        plaintext_key=plain_key,
        key_prefix=key_prefix,
        created_at=api_key.created_at,
    )


def revoke_api_key(db: Session, key_id: int, user_id: int) -> APIKey:
    """
    Revoke one of an identity's active keys.

    Raises:
        NotFound: no active key with this id belongs to user_id
    """
    stmt = select(APIKey).where(
        APIKey.id == key_id,
        APIKey.user_id == user_id,
        APIKey.is_active.is_(True),
    )
    api_key = db.execute(stmt).scalar_one_or_none()

    if api_key is None:
        raise NotFound("API key not found")

    api_key.is_active = False
    api_key.revoked_at = utcnow()
    db.commit()
    db.refresh(api_key)

    logger.info(f"Revoked API key {api_key.key_prefix}... for user {user_id}")
    return api_key


def list_api_keys(db: Session, user_id: int, include_revoked: bool = False) -> list[APIKey]:
    stmt = select(APIKey).where(APIKey.user_id == user_id)
    if not include_revoked:
        stmt = stmt.where(APIKey.is_active.is_(True))
    stmt = stmt.order_by(APIKey.created_at.desc(), APIKey.id.desc())
    return list(db.execute(stmt).scalars().all())


def list_all_api_keys(db: Session) -> list[APIKey]:
    """Every key in the system, revoked ones included (admin view)."""
    stmt = select(APIKey).order_by(APIKey.id.desc())
    return list(db.execute(stmt).scalars().all())


def get_api_key_for_user(db: Session, key_id: int, user_id: int) -> APIKey:
    stmt = select(APIKey).where(APIKey.id == key_id, APIKey.user_id == user_id)
    api_key = db.execute(stmt).scalar_one_or_none()
    if api_key is None:
        raise NotFound("API key not found")
    return api_key
