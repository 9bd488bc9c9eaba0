"""
Short URL Model

Links created through the metered short URL tool.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class ShortURL(Base):
    """
    Short URL model.

    Table: short_urls

    - short_code: unique slug used in /s/{short_code}
    - password_hash: bcrypt hash when the link is password protected
    - click_count: incremented atomically on every redirect
    """

    __tablename__ = "short_urls"

    id: Mapped[int] = mapped_column(primary_key=True)

    short_code: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )

    original_url: Mapped[str] = mapped_column(Text, nullable=False)

    password_hash: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    click_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    last_accessed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    api_key_id: Mapped[int | None] = mapped_column(
        ForeignKey("api_keys.id"),
        nullable=True,
    )

    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id"),
        index=True,
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"ShortURL(id={self.id}, code='{self.short_code}')"
