"""
Utilities Package

Small helpers shared by services and routers:
- Timezone-aware timestamps (SQLite hands back naive datetimes)
- Key masking for logs and usage entries
"""

from datetime import UTC, datetime

# Characters of a presented key kept in usage logs
KEY_DISPLAY_LENGTH = 8


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """
    Attach UTC to naive datetimes read back from the database.

    SQLite drops tzinfo from DateTime(timezone=True) columns; comparing
    those values with utcnow() would otherwise raise TypeError.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def mask_key(presented_key: str) -> str:
    """
    Privacy-truncated form of a presented key.

    Example:
        >>> mask_key("shd_0123456789abcdef")
        'shd_0123...'
    """
    return f"{presented_key[:KEY_DISPLAY_LENGTH]}..."
