"""
Tests for the daily quota enforcer.

Quota days are passed explicitly so rollover can be tested without
touching the clock.
"""

from datetime import date, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from app.models import User
from app.services import quota

TODAY = date(2026, 3, 14)
YESTERDAY = TODAY - timedelta(days=1)


def set_counter(db: Session, user: User, count: int, day: date | None) -> None:
    user.requests_today = count
    user.last_reset_date = day
    db.commit()


class TestCheckAndAdmit:
    def test_fresh_identity_is_admitted(self, alice: User):
        decision = quota.check_and_admit(alice, TODAY)
        assert decision.admitted is True
        assert decision.current == 0
        assert decision.limit == 1000

    def test_at_limit_is_denied(self, db_session: Session, alice: User):
        alice.daily_limit = 5
        set_counter(db_session, alice, 5, TODAY)

        decision = quota.check_and_admit(alice, TODAY)
        assert decision.admitted is False
        assert decision.reason == quota.DAILY_LIMIT_EXCEEDED
        assert decision.current == 5
        assert decision.limit == 5

    def test_stale_counter_counts_as_zero(self, db_session: Session, alice: User):
        alice.daily_limit = 5
        set_counter(db_session, alice, 5, YESTERDAY)

        decision = quota.check_and_admit(alice, TODAY)
        assert decision.admitted is True
        assert decision.current == 0

    def test_zero_limit_denies_everything(self, db_session: Session, alice: User):
        alice.daily_limit = 0
        db_session.commit()
        assert quota.check_and_admit(alice, TODAY).admitted is False


class TestRollOrIncrement:
    def test_increments_same_day(self, db_session: Session, alice: User):
        set_counter(db_session, alice, 3, TODAY)
        quota.roll_or_increment(db_session, alice.id, TODAY)

        db_session.refresh(alice)
        assert alice.requests_today == 4
        assert alice.last_reset_date == TODAY

    def test_rolls_over_to_one_on_new_day(self, db_session: Session, alice: User):
        set_counter(db_session, alice, 999, YESTERDAY)
        quota.roll_or_increment(db_session, alice.id, TODAY)

        db_session.refresh(alice)
        assert alice.requests_today == 1
        assert alice.last_reset_date == TODAY

    def test_first_ever_request(self, db_session: Session, alice: User):
        quota.roll_or_increment(db_session, alice.id, TODAY)
        db_session.refresh(alice)
        assert alice.requests_today == 1

    def test_ignores_limit(self, db_session: Session, alice: User):
        alice.daily_limit = 1
        set_counter(db_session, alice, 1, TODAY)
        quota.roll_or_increment(db_session, alice.id, TODAY)

        db_session.refresh(alice)
        assert alice.requests_today == 2


class TestReserve:
    def test_exactly_limit_requests_admitted(self, db_session: Session, alice: User):
        alice.daily_limit = 3
        db_session.commit()

        taken = [quota.reserve(db_session, alice.id, TODAY) for _ in range(4)]

        assert taken == [True, True, True, False]
        db_session.refresh(alice)
        assert alice.requests_today == 3

    def test_next_day_resets(self, db_session: Session, alice: User):
        alice.daily_limit = 2
        set_counter(db_session, alice, 2, YESTERDAY)

        assert quota.reserve(db_session, alice.id, TODAY) is True
        db_session.refresh(alice)
        assert alice.requests_today == 1
        assert alice.last_reset_date == TODAY

    def test_zero_limit_never_reserves(self, db_session: Session, alice: User):
        alice.daily_limit = 0
        db_session.commit()
        assert quota.reserve(db_session, alice.id, TODAY) is False

    def test_unknown_user(self, db_session: Session):
        assert quota.reserve(db_session, 999999, TODAY) is False


class TestNextResetAt:
    def test_utc_midnight(self):
        reset = quota.next_reset_at(TODAY)
        assert reset.date() == TODAY + timedelta(days=1)
        assert reset.hour == 0 and reset.minute == 0
        assert reset.utcoffset() == timezone.utc.utcoffset(None)

    def test_configured_zone(self, settings, monkeypatch):
        monkeypatch.setattr(settings, "quota_timezone", "Asia/Jakarta")
        reset = quota.next_reset_at(TODAY)
        assert reset.tzinfo == ZoneInfo("Asia/Jakarta")
        assert reset.date() == TODAY + timedelta(days=1)
