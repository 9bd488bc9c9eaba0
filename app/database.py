"""
Database Configuration Module

This module sets up SQLAlchemy 2.0 for the ShardoX API.

The original service kept users, keys and logs in flat JSON files that were
read, mutated and rewritten without locking. Here every table lives in a
transactional store (SQLite by default, any SQLAlchemy URL in production)
and shared counters are changed with single atomic UPDATE statements.

Session Management Pattern
==========================
We use the "session per request" pattern:
1. Request arrives -> create a new session
2. Use session for all database operations in that request
3. Commit on success, rollback on failure
4. Close session when request ends
"""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from app.config import get_settings

settings = get_settings()


def _engine_options(database_url: str) -> dict[str, Any]:
    """
    Build create_engine() keyword arguments for the configured backend.

    Persistence calls get a bounded wait: SQLite's busy timeout and
    PostgreSQL's statement_timeout both come from db_timeout_seconds.
    """
    backend = make_url(database_url).get_backend_name()

    if backend == "sqlite":
        return {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.db_timeout_seconds,
            },
        }

    options: dict[str, Any] = {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": True,  # Verify connections are alive before using
    }
    if backend == "postgresql":
        timeout_ms = int(settings.db_timeout_seconds * 1000)
        options["connect_args"] = {"options": f"-c statement_timeout={timeout_ms}"}
    return options


# =============================================================================
# Database Engine
# =============================================================================
engine = create_engine(
    settings.database_url,
    echo=settings.debug,  # Log SQL in debug mode
    **_engine_options(settings.database_url),
)


# =============================================================================
# Session Factory
# =============================================================================
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic uses Base.metadata to discover models for migrations.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Any exception raised while the session is in use rolls back the open
    transaction, so a failed request never leaves a partial write behind.

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# =============================================================================
# Utility Functions
# =============================================================================
def create_tables() -> None:
    """
    Create all database tables.

    WARNING: In production, use Alembic migrations instead!
    """
    Base.metadata.create_all(bind=engine)
