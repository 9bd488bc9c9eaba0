"""
User Model

Represents a registered identity: the owner of API keys and the subject of
the daily request quota.

SQLAlchemy 2.0 Features Used:
- mapped_column(): New way to define columns with full type support
- Mapped[]: Type hint wrapper for SQLAlchemy columns
- relationship(): Define relationships between models
"""

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.api_key import APIKey


class UserRole(str, Enum):
    """
    Roles an identity can hold.

    - USER: Can manage its own keys and call metered endpoints
    - ADMIN: Can also see every key, every log entry and adjust quotas
    """
    USER = "user"
    ADMIN = "admin"


class User(Base):
    """
    User model representing registered identities.

    Table: users

    Quota state lives on the row itself:
    - daily_limit: ceiling of admitted requests per calendar day
    - requests_today: admitted requests since last_reset_date
    - last_reset_date: calendar day (quota timezone) the counter belongs to

    requests_today is only ever changed through atomic UPDATE statements
    in app.services.quota; never assign to it from request code.

    Identities are never deleted, only deactivated (is_active=False).
    """

    __tablename__ = "users"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Authentication Fields
    # -------------------------------------------------------------------------
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="User's email address (used for login)"
    )

    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
        comment="Unique username"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.USER.value,
        nullable=False,
        comment="Role: user or admin"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Whether the account is active"
    )

    # -------------------------------------------------------------------------
    # Quota Fields
    # -------------------------------------------------------------------------
    daily_limit: Mapped[int] = mapped_column(
        Integer,
        default=1000,
        nullable=False,
        comment="Admitted requests allowed per calendar day"
    )

    requests_today: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Admitted requests counted for last_reset_date"
    )

    last_reset_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        comment="Calendar day the counter belongs to"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="When the user registered"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="When the user row was last updated"
    )

    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the user last logged in"
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    api_keys: Mapped[list["APIKey"]] = relationship(
        "APIKey",
        back_populates="user",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def requests_used_on(self, today: date) -> int:
        """Counter value that applies to `today` (0 once the day rolled over)."""
        if self.last_reset_date != today:
            return 0
        return self.requests_today

    def __repr__(self) -> str:
        """Developer-friendly string representation."""
        return f"User(id={self.id}, email='{self.email}', username='{self.username}')"
