"""
API Key Validator

Authenticates a presented key and resolves the identity that owns it.

Lookup goes through the indexed key_prefix column, so only keys sharing
the first 16 characters are bcrypt-compared. Every failure (unknown key,
hash mismatch, revoked key, deactivated owner, unparseable stored hash)
produces the same ValidationResult(valid=False); callers never learn why.

Database errors are not failures of the key and are left to propagate.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.models import APIKey, User
from app.services.credentials import LOOKUP_PREFIX_LENGTH
from app.services.security import dummy_verify, verify_secret
from app.utils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    identity: User | None = None
    key_id: int | None = None
    rate_limit: int | None = None


INVALID = ValidationResult(valid=False)


def _find_matching_key(db: Session, presented_key: str) -> APIKey | None:
    prefix = presented_key[:LOOKUP_PREFIX_LENGTH]
    stmt = select(APIKey).where(
        APIKey.key_prefix == prefix,
        APIKey.is_active.is_(True),
    )
    candidates = db.execute(stmt).scalars().all()

    if not candidates:
        dummy_verify()
        return None

    for candidate in candidates:
        if verify_secret(presented_key, candidate.key_hash):
            return candidate
    return None


def validate(db: Session, presented_key: str) -> ValidationResult:
    """
    Validate a presented API key.

    On success the key's usage_count and last_used_at are updated in one
    UPDATE and committed before returning. The identity in the result is
    read after that commit, so its quota fields are current.

    Args:
        db: Database session
        presented_key: Key exactly as the client sent it

    Returns:
        ValidationResult; identity, key_id and rate_limit are only set
        when valid is True
    """
    if not presented_key:
        return INVALID

    api_key = _find_matching_key(db, presented_key)
    if api_key is None:
        logger.debug("API key rejected")
        return INVALID

    user = api_key.user
    if user is None or not user.is_active:
        logger.info(f"API key {api_key.key_prefix}... belongs to an inactive identity")
        return INVALID

    db.execute(
        update(APIKey)
        .where(APIKey.id == api_key.id)
        .values(usage_count=APIKey.usage_count + 1, last_used_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()

    # Reload after the commit so the quota snapshot is fresh
    db.refresh(user)

    return ValidationResult(
        valid=True,
        identity=user,
        key_id=api_key.id,
        rate_limit=api_key.rate_limit,
    )
