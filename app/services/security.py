"""
Security Service

Handles one-way hashing of secrets and JWT token operations.

Security Features:
==================
1. Passwords and API keys are hashed with bcrypt (passlib)
2. Verification uses passlib's constant-time comparison
3. JWT tokens (python-jose) for the account-management endpoints

Usage:
    from app.services.security import hash_secret, verify_secret

    hashed = hash_secret("SecurePass123")
    is_valid = verify_secret("SecurePass123", hashed)
"""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# -------------------------------------------------------------------------
# Hashing Configuration
# -------------------------------------------------------------------------
# One context for passwords and API key secrets. bcrypt is slow and salted;
# the cost factor comes from settings so tests can lower it.
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_secret(secret: str) -> str:
    """
    Hash a password or API key with bcrypt.

    Example:
        >>> hashed = hash_secret("SecurePass123")
        >>> hashed.startswith("$2b$")
        True
    """
    return pwd_context.hash(secret)


def verify_secret(plain: str, hashed: str) -> bool:
    """
    Verify a plain secret against a stored bcrypt hash.

    Malformed stored hashes count as a mismatch rather than an error.
    """
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        logger.warning("Stored hash could not be parsed; treating as mismatch")
        return False


def dummy_verify() -> None:
    """Spend the time of one verify when there is nothing to compare against."""
    pwd_context.dummy_verify()


# -------------------------------------------------------------------------
# JWT Token Configuration
# -------------------------------------------------------------------------
ALGORITHM = "HS256"


def create_access_token(
    data: dict,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode in the token
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update({"exp": expire, "type": "access"})

    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def create_refresh_token(
    data: dict,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT refresh token (longer-lived than access token)."""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(days=settings.refresh_token_expire_days)

    to_encode.update({"exp": expire, "type": "refresh"})

    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict | None:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None


def verify_token_type(token: str, expected_type: str) -> dict | None:
    """
    Decode a token and verify its type ("access" or "refresh").

    Returns:
        Decoded payload if valid and correct type, None otherwise
    """
    payload = decode_token(token)

    if payload is None:
        return None

    if payload.get("type") != expected_type:
        logger.warning(f"Token type mismatch: expected {expected_type}")
        return None

    return payload
