"""
Quota Enforcer

Per-identity daily request ceiling.

Each identity row carries requests_today and last_reset_date. A counter
whose last_reset_date is not today is stale: it counts as 0 and the next
increment restarts it at 1. "Today" is the calendar day in the configured
quota timezone (settings.quota_today()).

The counter is only ever changed with single conditional UPDATE
statements, never read-modify-write in Python, so concurrent requests for
the same identity cannot lose increments or overshoot the limit.

Usage:
    today = settings.quota_today()
    decision = check_and_admit(user, today)
    if decision.admitted and reserve(db, user.id, today):
        ...
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from sqlalchemy import and_, case, or_, update
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models import User

logger = logging.getLogger(__name__)
settings = get_settings()

DAILY_LIMIT_EXCEEDED = "daily_limit_exceeded"


@dataclass(frozen=True)
class AdmitDecision:
    """Outcome of a quota check. reason is only set when denied."""

    admitted: bool
    current: int
    limit: int
    reason: str | None = None

    @classmethod
    def admit(cls, current: int, limit: int) -> "AdmitDecision":
        return cls(admitted=True, current=current, limit=limit)

    @classmethod
    def deny(cls, current: int, limit: int) -> "AdmitDecision":
        return cls(admitted=False, current=current, limit=limit, reason=DAILY_LIMIT_EXCEEDED)


def effective_count(user: User, today: date) -> int:
    return user.requests_used_on(today)


def check_and_admit(user: User, today: date) -> AdmitDecision:
    """
    Compare an identity's quota snapshot with its daily limit.

    Pure decision, nothing is written. A limit of 0 denies everything.
    """
    current = effective_count(user, today)
    if current >= user.daily_limit:
        return AdmitDecision.deny(current, user.daily_limit)
    return AdmitDecision.admit(current, user.daily_limit)


def _counter_values(today: date) -> dict:
    same_day = User.last_reset_date == today
    return {
        "requests_today": case((same_day, User.requests_today + 1), else_=1),
        "last_reset_date": today,
    }


def roll_or_increment(db: Session, user_id: int, today: date) -> None:
    """
    Count one request for an identity, unconditionally.

    Restarts the counter at 1 when the stored day differs from today,
    otherwise adds 1. Committed before returning.
    """
    db.execute(
        update(User)
        .where(User.id == user_id)
        .values(**_counter_values(today))
        .execution_options(synchronize_session=False)
    )
    db.commit()


def reserve(db: Session, user_id: int, today: date) -> bool:
    """
    Take one quota slot if one is free.

    Same update as roll_or_increment, guarded by the limit in the WHERE
    clause. Two requests racing for the last slot cannot both match.

    Returns:
        True if the slot was taken, False if the identity is at its limit
    """
    same_day = User.last_reset_date == today
    new_day = or_(User.last_reset_date.is_(None), User.last_reset_date != today)

    result = db.execute(
        update(User)
        .where(
            User.id == user_id,
            or_(
                and_(same_day, User.requests_today < User.daily_limit),
                and_(new_day, User.daily_limit > 0),
            ),
        )
        .values(**_counter_values(today))
        .execution_options(synchronize_session=False)
    )
    db.commit()

    taken = result.rowcount == 1
    if not taken:
        logger.info(f"Quota reservation refused for user {user_id}")
    return taken


def next_reset_at(today: date) -> datetime:
    """Start of the next quota day, as an aware datetime in the quota timezone."""
    return datetime.combine(today + timedelta(days=1), time.min, tzinfo=settings.quota_tz)
