"""
Tests for the credential store service.

Covers:
- Identity registration and uniqueness (active and inactive records)
- Credential verification
- API key issue / revoke / listing
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.exceptions import DuplicateIdentity, InvalidCredentials, NotFound
from app.models import APIKey, User
from app.services import credentials
from app.services.security import verify_secret


def user_count(db: Session) -> int:
    return db.scalar(select(func.count(User.id)))


class TestCreateIdentity:
    def test_creates_user_with_hashed_password(self, db_session: Session, settings):
        user = credentials.create_identity(db_session, "alice", "alice@x.io", "secret123")

        assert user.id is not None
        assert user.username == "alice"
        assert user.hashed_password != "secret123"
        assert verify_secret("secret123", user.hashed_password)
        assert user.daily_limit == settings.default_daily_limit
        assert user.requests_today == 0
        assert user.is_active is True

    def test_normalizes_case(self, db_session: Session):
        user = credentials.create_identity(db_session, "Alice", "Alice@X.io", "secret123")
        assert user.username == "alice"
        assert user.email == "alice@x.io"

    def test_duplicate_username_changes_nothing(self, db_session: Session):
        credentials.create_identity(db_session, "alice", "alice@x.io", "secret123")
        before = user_count(db_session)

        with pytest.raises(DuplicateIdentity):
            credentials.create_identity(db_session, "alice", "other@x.io", "secret123")

        assert user_count(db_session) == before

    def test_duplicate_email_changes_nothing(self, db_session: Session):
        credentials.create_identity(db_session, "alice", "alice@x.io", "secret123")
        before = user_count(db_session)

        with pytest.raises(DuplicateIdentity):
            credentials.create_identity(db_session, "alice2", "alice@x.io", "secret123")

        assert user_count(db_session) == before

    def test_inactive_identity_still_reserves_email(self, db_session: Session):
        user = credentials.create_identity(db_session, "alice", "alice@x.io", "secret123")
        user.is_active = False
        db_session.commit()

        with pytest.raises(DuplicateIdentity):
            credentials.create_identity(db_session, "newalice", "alice@x.io", "secret123")


class TestVerifyCredentials:
    def test_valid_credentials(self, db_session: Session, alice: User):
        user = credentials.verify_credentials(db_session, "alice@x.io", "secret123")
        assert user.id == alice.id
        assert user.last_login_at is not None

    def test_email_is_case_insensitive(self, db_session: Session, alice: User):
        user = credentials.verify_credentials(db_session, "ALICE@x.io", "secret123")
        assert user.id == alice.id

    def test_wrong_password(self, db_session: Session, alice: User):
        with pytest.raises(InvalidCredentials):
            credentials.verify_credentials(db_session, "alice@x.io", "wrong")

    def test_unknown_email(self, db_session: Session):
        with pytest.raises(InvalidCredentials):
            credentials.verify_credentials(db_session, "nobody@x.io", "secret123")

    def test_inactive_identity(self, db_session: Session, alice: User):
        alice.is_active = False
        db_session.commit()

        with pytest.raises(InvalidCredentials):
            credentials.verify_credentials(db_session, "alice@x.io", "secret123")

    def test_failures_are_indistinguishable(self, db_session: Session, alice: User):
        with pytest.raises(InvalidCredentials) as unknown:
            credentials.verify_credentials(db_session, "nobody@x.io", "secret123")
        with pytest.raises(InvalidCredentials) as wrong:
            credentials.verify_credentials(db_session, "alice@x.io", "wrong")

        assert unknown.value.to_dict() == wrong.value.to_dict()


class TestIssueApiKey:
    def test_plaintext_returned_once_and_only_hash_stored(self, db_session: Session, alice: User):
        issued = credentials.issue_api_key(db_session, alice.id, "prod")

        assert issued.plaintext_key.startswith("shd_")
        assert len(issued.plaintext_key) == 68
        assert issued.key_prefix == issued.plaintext_key[:16]

        record = db_session.get(APIKey, issued.id)
        assert record.key_hash != issued.plaintext_key
        assert issued.plaintext_key not in record.key_hash
        assert verify_secret(issued.plaintext_key, record.key_hash)

    def test_defaults(self, db_session: Session, alice: User, settings):
        issued = credentials.issue_api_key(db_session, alice.id, "prod")
        record = db_session.get(APIKey, issued.id)

        assert record.is_active is True
        assert record.usage_count == 0
        assert record.last_used_at is None
        assert record.rate_limit == settings.default_key_rate_limit
        assert record.allowed_endpoints == ["*"]

    def test_keys_are_unique(self, db_session: Session, alice: User):
        first = credentials.issue_api_key(db_session, alice.id, "one")
        second = credentials.issue_api_key(db_session, alice.id, "two")
        assert first.plaintext_key != second.plaintext_key


class TestRevokeApiKey:
    def test_revoke_keeps_record(self, db_session: Session, alice: User, alice_key):
        revoked = credentials.revoke_api_key(db_session, alice_key.id, alice.id)

        assert revoked.is_active is False
        assert revoked.revoked_at is not None
        assert db_session.get(APIKey, alice_key.id) is not None

    def test_revoke_other_users_key(self, db_session: Session, bob: User, alice_key):
        with pytest.raises(NotFound):
            credentials.revoke_api_key(db_session, alice_key.id, bob.id)

    def test_revoke_twice(self, db_session: Session, alice: User, alice_key):
        credentials.revoke_api_key(db_session, alice_key.id, alice.id)
        with pytest.raises(NotFound):
            credentials.revoke_api_key(db_session, alice_key.id, alice.id)

    def test_listing(self, db_session: Session, alice: User, alice_key, bob_key):
        extra = credentials.issue_api_key(db_session, alice.id, "extra")
        credentials.revoke_api_key(db_session, extra.id, alice.id)

        active = credentials.list_api_keys(db_session, alice.id)
        everything = credentials.list_api_keys(db_session, alice.id, include_revoked=True)
        all_keys = credentials.list_all_api_keys(db_session)

        assert [k.id for k in active] == [alice_key.id]
        assert {k.id for k in everything} == {alice_key.id, extra.id}
        assert {k.id for k in all_keys} == {alice_key.id, extra.id, bob_key.id}
