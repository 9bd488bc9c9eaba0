"""
Usage Log Model

One row per recorded API call made with an API key.

The table is append-only and capped: after each insert everything but the
newest `usage_log_retention` rows is deleted (see app.services.usage).
Rows reference the key and the owning user by foreign key; key_display is
only the masked form of the presented key, kept for display.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class UsageLog(Base):
    """
    Usage log entry.

    Table: usage_logs

    Ordering: id is monotonically increasing, so "newest first" is
    ORDER BY id DESC (created_at can tie within one clock tick).
    """

    __tablename__ = "usage_logs"

    id: Mapped[int] = mapped_column(primary_key=True)

    api_key_id: Mapped[int | None] = mapped_column(
        ForeignKey("api_keys.id"),
        index=True,
        nullable=True,
        comment="Key the request was made with"
    )

    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id"),
        index=True,
        nullable=True,
        comment="Identity owning the key"
    )

    key_display: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="First 8 characters of the presented key + '...'"
    )

    endpoint: Mapped[str] = mapped_column(
        String(100),
        index=True,
        nullable=False,
        comment="Logical endpoint name, e.g. shorturl_create"
    )

    ip: Mapped[str] = mapped_column(
        String(64),
        default="unknown",
        nullable=False,
    )

    user_agent: Mapped[str] = mapped_column(
        String(512),
        default="unknown",
        nullable=False,
    )

    payload: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        default=dict,
        nullable=False,
        comment="Arbitrary request context"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"UsageLog(id={self.id}, endpoint='{self.endpoint}', key='{self.key_display}')"
