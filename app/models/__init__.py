"""
SQLAlchemy Models Package

This package contains all database models for the ShardoX API.

Model Relationships:
- User -> APIKey: One-to-Many (an identity owns zero or more keys)
- UsageLog -> APIKey / User: foreign keys to the key used and its owner
- ShortURL -> APIKey / User: creator of the link

Import all models here to:
1. Make them available as: from app.models import User, APIKey
2. Ensure Alembic discovers them for migrations
"""

from app.models.user import User, UserRole
from app.models.api_key import APIKey
from app.models.usage_log import UsageLog
from app.models.short_url import ShortURL

__all__ = [
    "User",
    "UserRole",
    "APIKey",
    "UsageLog",
    "ShortURL",
]
