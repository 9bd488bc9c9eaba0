"""
Tests for the usage recorder and usage statistics.
"""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models import APIKey, UsageLog, User
from app.services import usage
from app.services.authorization import AuthContext
from app.utils import utcnow


def log_count(db: Session) -> int:
    return db.scalar(select(func.count(UsageLog.id)))


class TestAppendCapped:
    def test_keeps_newest_entries(self, db_session: Session):
        db_session.add_all(
            UsageLog(key_display="shd_test...", endpoint=f"e{i}", created_at=utcnow())
            for i in range(1000)
        )
        db_session.commit()

        newest = UsageLog(key_display="shd_test...", endpoint="e1000", created_at=utcnow())
        usage.append_capped(db_session, newest, cap=1000)

        assert log_count(db_session) == 1000
        recent = usage.list_recent_logs(db_session, limit=1000)
        assert recent[0].endpoint == "e1000"
        assert recent[-1].endpoint == "e1"
        assert "e0" not in {entry.endpoint for entry in recent}

    def test_small_cap(self, db_session: Session):
        for i in range(5):
            usage.append_capped(
                db_session,
                UsageLog(key_display="x...", endpoint=f"e{i}", created_at=utcnow()),
                cap=2,
            )
        assert [e.endpoint for e in usage.list_recent_logs(db_session)] == ["e4", "e3"]


class TestRecord:
    def test_record_resolves_owner_and_counts_quota(
        self, db_session: Session, alice: User, alice_key, settings
    ):
        entry = usage.record(
            db_session,
            alice_key.plaintext_key,
            "shorturl_create",
            {"ip": "10.0.0.1", "user_agent": "pytest", "url": "https://example.com"},
        )

        assert entry.user_id == alice.id
        assert entry.api_key_id == alice_key.id
        assert entry.key_display == alice_key.plaintext_key[:8] + "..."
        assert entry.ip == "10.0.0.1"
        assert entry.user_agent == "pytest"
        assert entry.payload == {"url": "https://example.com"}

        db_session.refresh(alice)
        assert alice.requests_used_on(settings.quota_today()) == 1

    def test_record_never_stores_full_key(self, db_session: Session, alice_key):
        entry = usage.record(db_session, alice_key.plaintext_key, "shorturl_list")
        assert alice_key.plaintext_key not in entry.key_display
        assert alice_key.plaintext_key not in str(entry.payload)

    def test_record_with_auth_context_skips_validation(
        self, db_session: Session, alice: User, alice_key, settings
    ):
        auth = AuthContext(
            user=alice,
            key_id=alice_key.id,
            key_display=alice_key.plaintext_key[:8] + "...",
            presented_key=alice_key.plaintext_key,
        )
        usage.record(db_session, alice_key.plaintext_key, "shorturl_info", auth=auth, count_quota=False)

        key = db_session.get(APIKey, alice_key.id)
        db_session.refresh(key)
        db_session.refresh(alice)
        assert key.usage_count == 0
        assert alice.requests_used_on(settings.quota_today()) == 0
        assert log_count(db_session) == 1

    def test_record_with_unknown_key_logs_without_owner(self, db_session: Session):
        entry = usage.record(db_session, "shd_" + "0" * 64, "shorturl_create")
        assert entry.user_id is None
        assert entry.api_key_id is None
        assert entry.ip == "unknown"

    def test_record_respects_retention_setting(
        self, db_session: Session, alice_key, settings, monkeypatch
    ):
        monkeypatch.setattr(settings, "usage_log_retention", 3)
        for i in range(5):
            usage.record(db_session, alice_key.plaintext_key, f"e{i}", count_quota=False)
        assert log_count(db_session) == 3


class TestStatistics:
    def test_user_usage(self, db_session: Session, alice: User, alice_key, bob_key):
        for _ in range(3):
            usage.record(db_session, alice_key.plaintext_key, "shorturl_list")
        usage.record(db_session, bob_key.plaintext_key, "shorturl_list")

        db_session.refresh(alice)
        stats = usage.get_user_usage(db_session, alice)

        assert stats["total_requests"] == 3
        assert stats["today_requests"] == 3
        assert stats["usage_today"] == 3
        assert stats["daily_limit"] == 1000
        assert stats["last_request"] is not None

    def test_user_usage_empty(self, db_session: Session, alice: User):
        stats = usage.get_user_usage(db_session, alice)
        assert stats["total_requests"] == 0
        assert stats["last_request"] is None

    def test_user_logs_only_own(self, db_session: Session, alice: User, alice_key, bob_key):
        usage.record(db_session, alice_key.plaintext_key, "a")
        usage.record(db_session, bob_key.plaintext_key, "b")

        logs = usage.list_user_logs(db_session, alice.id)
        assert [e.endpoint for e in logs] == ["a"]

    def test_admin_stats(self, db_session: Session, alice_key, bob_key):
        usage.record(db_session, alice_key.plaintext_key, "shorturl_create")
        usage.record(db_session, alice_key.plaintext_key, "shorturl_create")
        usage.record(db_session, bob_key.plaintext_key, "shorturl_list")

        stats = usage.get_admin_stats(db_session)

        assert stats["total_users"] == 2
        assert stats["active_users"] == 2
        assert stats["total_api_keys"] == 2
        assert stats["active_api_keys"] == 2
        assert stats["total_requests"] == 3
        assert stats["today_requests"] == 3
        assert stats["endpoint_stats"] == {"shorturl_create": 2, "shorturl_list": 1}
        assert stats["recent_activity"][0].endpoint == "shorturl_list"
