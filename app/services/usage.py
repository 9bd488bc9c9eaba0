"""
Usage Recorder

Appends one usage log entry per metered call and keeps the log capped at
the most recent settings.usage_log_retention entries.

Recording is synchronous: handlers call record() before they return, so
the entry and the counter update are committed by the time the client
sees the response.

Statistics helpers for the profile and admin endpoints live here too.
"""

import logging
from datetime import UTC, datetime, time
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models import APIKey, ShortURL, UsageLog, User
from app.services import quota
from app.services.api_key_validator import validate
from app.utils import ensure_utc, mask_key, utcnow

if TYPE_CHECKING:
    from app.services.authorization import AuthContext

logger = logging.getLogger(__name__)
settings = get_settings()

RECENT_ACTIVITY_SIZE = 20


def append_capped(db: Session, entry: UsageLog, cap: int) -> UsageLog:
    """
    Insert an entry, then delete everything older than the newest `cap`.

    Both statements run in one transaction, committed before returning.
    """
    db.add(entry)
    db.flush()

    newest = select(UsageLog.id).order_by(UsageLog.id.desc()).limit(cap)
    db.execute(
        delete(UsageLog)
        .where(UsageLog.id.not_in(newest))
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.refresh(entry)
    return entry


def record(
    db: Session,
    presented_key: str,
    endpoint: str,
    context: dict[str, Any] | None = None,
    *,
    auth: "AuthContext | None" = None,
    count_quota: bool = True,
) -> UsageLog:
    """
    Record one call made with an API key.

    Args:
        db: Database session
        presented_key: Key as sent by the client; only its masked form is stored
        endpoint: Logical endpoint name, e.g. "shorturl_create"
        context: Request details; "ip" and "user_agent" get their own
            columns, everything else is stored as the JSON payload
        auth: Context from the authorization dependency. When omitted the
            owner is resolved with one validate() call.
        count_quota: Also count the call against the owner's daily quota.
            Tool handlers reserve their slot through authorization.admit()
            first and pass False.
    """
    payload = dict(context or {})
    ip = payload.pop("ip", None) or "unknown"
    user_agent = payload.pop("user_agent", None) or "unknown"

    if auth is not None:
        user_id, key_id = auth.user.id, auth.key_id
    else:
        result = validate(db, presented_key)
        user_id = result.identity.id if result.valid else None
        key_id = result.key_id

    entry = UsageLog(
        api_key_id=key_id,
        user_id=user_id,
        key_display=mask_key(presented_key),
        endpoint=endpoint,
        ip=ip,
        user_agent=user_agent,
        payload=payload,
        created_at=utcnow(),
    )
    append_capped(db, entry, settings.usage_log_retention)

    if count_quota and user_id is not None:
        quota.roll_or_increment(db, user_id, settings.quota_today())

    logger.debug(f"Recorded {endpoint} for {entry.key_display}")
    return entry


# =============================================================================
# Statistics
# =============================================================================

def _start_of_quota_day() -> datetime:
    """Start of today in the quota timezone, as a UTC datetime."""
    start = datetime.combine(settings.quota_today(), time.min, tzinfo=settings.quota_tz)
    return start.astimezone(UTC)


def get_user_usage(db: Session, user: User) -> dict[str, Any]:
    """
    Usage summary for one identity.

    total_requests and today_requests count retained log entries;
    usage_today is the quota counter, which also covers entries that
    have since been trimmed from the log.
    """
    total = db.scalar(select(func.count(UsageLog.id)).where(UsageLog.user_id == user.id))
    today = db.scalar(
        select(func.count(UsageLog.id)).where(
            UsageLog.user_id == user.id,
            UsageLog.created_at >= _start_of_quota_day(),
        )
    )
    last_request = db.scalar(
        select(func.max(UsageLog.created_at)).where(UsageLog.user_id == user.id)
    )

    return {
        "total_requests": total or 0,
        "today_requests": today or 0,
        "daily_limit": user.daily_limit,
        "usage_today": user.requests_used_on(settings.quota_today()),
        "last_request": ensure_utc(last_request),
    }


def list_user_logs(db: Session, user_id: int, limit: int = 50) -> list[UsageLog]:
    stmt = (
        select(UsageLog)
        .where(UsageLog.user_id == user_id)
        .order_by(UsageLog.id.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def list_recent_logs(db: Session, limit: int = 100) -> list[UsageLog]:
    stmt = select(UsageLog).order_by(UsageLog.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


def get_admin_stats(db: Session) -> dict[str, Any]:
    """System-wide totals, per-endpoint counts and the latest activity."""
    endpoint_rows = db.execute(
        select(UsageLog.endpoint, func.count(UsageLog.id))
        .group_by(UsageLog.endpoint)
        .order_by(func.count(UsageLog.id).desc())
    ).all()

    return {
        "total_users": db.scalar(select(func.count(User.id))) or 0,
        "active_users": db.scalar(
            select(func.count(User.id)).where(User.is_active.is_(True))
        ) or 0,
        "total_api_keys": db.scalar(select(func.count(APIKey.id))) or 0,
        "active_api_keys": db.scalar(
            select(func.count(APIKey.id)).where(APIKey.is_active.is_(True))
        ) or 0,
        "total_requests": db.scalar(select(func.count(UsageLog.id))) or 0,
        "today_requests": db.scalar(
            select(func.count(UsageLog.id)).where(UsageLog.created_at >= _start_of_quota_day())
        ) or 0,
        "total_short_urls": db.scalar(select(func.count(ShortURL.id))) or 0,
        "endpoint_stats": {endpoint: count for endpoint, count in endpoint_rows},
        "recent_activity": list_recent_logs(db, RECENT_ACTIVITY_SIZE),
    }
