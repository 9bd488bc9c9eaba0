"""
pytest Fixtures for ShardoX API Tests

Shared fixtures used across all test files.

For database tests, we use:
- session scope for engine (expensive to create)
- function scope for sessions (each test runs in a transaction that is
  rolled back afterwards)
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings
from app.database import Base, get_db
from app.main import app
from app.models import User, UserRole
from app.services.credentials import IssuedApiKey, issue_api_key
from app.services.security import create_access_token, hash_secret

# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def engine():
    """
    SQLite in-memory engine shared by the whole run.

    StaticPool keeps the single connection alive; without it the in-memory
    database would disappear between connections.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """
    Fresh session per test, wrapped in an outer transaction.

    Commits made by the code under test stay inside that transaction,
    which is rolled back when the test ends.
    """
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )

    connection = engine.connect()
    transaction = connection.begin()
    session = TestSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Test client whose requests use the test session."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Session cleanup handled by db_session fixture

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def settings():
    return get_settings()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

def make_user(
    db: Session,
    username: str,
    email: str,
    password: str = "secret123",
    role: UserRole = UserRole.USER,
    daily_limit: int = 1000,
) -> User:
    user = User(
        username=username,
        email=email,
        hashed_password=hash_secret(password),
        role=role.value,
        is_active=True,
        daily_limit=daily_limit,
        requests_today=0,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def alice(db_session: Session) -> User:
    return make_user(db_session, "alice", "alice@x.io", password="secret123")


@pytest.fixture
def bob(db_session: Session) -> User:
    return make_user(db_session, "bob", "bob@x.io", password="hunter22")


@pytest.fixture
def admin_user(db_session: Session) -> User:
    return make_user(db_session, "admin", "admin@x.io", password="adminpass", role=UserRole.ADMIN)


@pytest.fixture
def alice_key(db_session: Session, alice: User) -> IssuedApiKey:
    return issue_api_key(db_session, alice.id, "alice key")


@pytest.fixture
def bob_key(db_session: Session, bob: User) -> IssuedApiKey:
    return issue_api_key(db_session, bob.id, "bob key")


def bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def alice_headers(alice: User) -> dict[str, str]:
    return bearer(alice)


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return bearer(admin_user)


@pytest.fixture
def key_headers(alice_key: IssuedApiKey) -> dict[str, str]:
    return {"X-API-Key": alice_key.plaintext_key}
