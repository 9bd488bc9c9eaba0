"""
Tests for API key validation.
"""

from unittest.mock import patch

from sqlalchemy.orm import Session

from app.models import APIKey, User
from app.services import credentials
from app.services.api_key_validator import validate


class TestValidate:
    def test_valid_key_resolves_owner(self, db_session: Session, alice: User, alice_key):
        result = validate(db_session, alice_key.plaintext_key)

        assert result.valid is True
        assert result.identity.id == alice.id
        assert result.key_id == alice_key.id
        assert result.rate_limit == 100

    def test_updates_usage_on_success(self, db_session: Session, alice_key):
        validate(db_session, alice_key.plaintext_key)
        validate(db_session, alice_key.plaintext_key)

        record = db_session.get(APIKey, alice_key.id)
        db_session.refresh(record)
        assert record.usage_count == 2
        assert record.last_used_at is not None

    def test_resolution_is_idempotent(self, db_session: Session, alice_key):
        first = validate(db_session, alice_key.plaintext_key)
        second = validate(db_session, alice_key.plaintext_key)
        assert first.identity.id == second.identity.id
        assert first.key_id == second.key_id

    def test_unknown_key(self, db_session: Session, alice_key):
        result = validate(db_session, "shd_" + "0" * 64)
        assert result.valid is False
        assert result.identity is None
        assert result.key_id is None

    def test_same_prefix_wrong_secret(self, db_session: Session, alice_key):
        forged = alice_key.plaintext_key[:16] + "f" * 52
        assert validate(db_session, forged).valid is False

    def test_empty_and_garbage(self, db_session: Session):
        assert validate(db_session, "").valid is False
        assert validate(db_session, "not-a-key").valid is False

    def test_revoked_key(self, db_session: Session, alice: User, alice_key):
        credentials.revoke_api_key(db_session, alice_key.id, alice.id)
        assert validate(db_session, alice_key.plaintext_key).valid is False

    def test_inactive_owner(self, db_session: Session, alice: User, alice_key):
        alice.is_active = False
        db_session.commit()
        assert validate(db_session, alice_key.plaintext_key).valid is False

    def test_failure_does_not_touch_usage(self, db_session: Session, alice_key):
        validate(db_session, alice_key.plaintext_key[:16] + "f" * 52)
        record = db_session.get(APIKey, alice_key.id)
        db_session.refresh(record)
        assert record.usage_count == 0

    def test_malformed_stored_hash_fails_closed(self, db_session: Session, alice_key):
        record = db_session.get(APIKey, alice_key.id)
        record.key_hash = "not-a-bcrypt-hash"
        db_session.commit()

        assert validate(db_session, alice_key.plaintext_key).valid is False

    def test_unknown_prefix_still_spends_a_verify(self, db_session: Session):
        with patch("app.services.api_key_validator.dummy_verify") as dummy:
            validate(db_session, "shd_" + "a" * 64)
        dummy.assert_called_once()
