"""
API Key Model

Represents API keys owned by users.

Security Features:
- Keys are stored as bcrypt hashes (never plain text)
- key_prefix is a non-secret lookup index, so validation does not have to
  bcrypt-compare against every stored key
- Tracks last usage and a cumulative usage counter for auditing
- Can be revoked without deletion
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.user import User


class APIKey(Base):
    """
    API Key model for authentication.

    Table: api_keys

    Security Notes:
    - key_hash stores a bcrypt hash of the full key
    - The plain key is only shown once during creation
    - key_prefix stores the first 16 chars ("shd_" + 12 hex) for lookup

    rate_limit and allowed_endpoints are recorded for every key but are
    not enforced; the daily quota on the owning user is the only limit.

    Example:
        api_key = APIKey(
            user_id=1,
            name="Production App",
            key_hash="$2b$12$...",
            key_prefix="shd_0a1b2c3d4e5f",
        )
    """

    __tablename__ = "api_keys"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        index=True,
        nullable=False,
        comment="Owning identity"
    )

    # -------------------------------------------------------------------------
    # Key Fields
    # -------------------------------------------------------------------------
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Human-readable name for the API key"
    )

    key_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash of the API key"
    )

    key_prefix: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        index=True,
        comment="First 16 characters of key for lookup"
    )

    # -------------------------------------------------------------------------
    # Status & Limits
    # -------------------------------------------------------------------------
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Whether the key is currently active"
    )

    rate_limit: Mapped[int] = mapped_column(
        Integer,
        default=100,
        nullable=False,
        comment="Declared requests per minute (not enforced)"
    )

    allowed_endpoints: Mapped[list[str]] = mapped_column(
        JSON,
        default=lambda: ["*"],
        nullable=False,
        comment="Declared endpoint allow-list (not enforced)"
    )

    # -------------------------------------------------------------------------
    # Audit Fields
    # -------------------------------------------------------------------------
    usage_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Successful validations of this key"
    )

    last_used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the key was last used"
    )

    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the key was revoked (null = never)"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="When the key was created"
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    user: Mapped["User"] = relationship("User", back_populates="api_keys")

    def __repr__(self) -> str:
        return f"APIKey(id={self.id}, name='{self.name}', prefix='{self.key_prefix}')"
