"""
Pydantic Schemas Package

Request/response validation models, kept separate from the SQLAlchemy
models so the API shape can differ from the storage shape.
"""

from app.schemas.api_key import AdminAPIKeyResponse, APIKeyCreate, APIKeyCreatedResponse, APIKeyResponse
from app.schemas.common import APIResponse, ErrorResponse
from app.schemas.qrcode import QRCodeCreate, QRCodeFormats, QRCodeResponse
from app.schemas.short_url import ShortURLCreate, ShortURLList, ShortURLResponse
from app.schemas.usage import AdminStats, UsageLogResponse
from app.schemas.user import (
    AdminUserUpdate,
    LoginRequest,
    ProfileResponse,
    RefreshTokenRequest,
    TokenResponse,
    UsageStats,
    UserCreate,
    UserResponse,
)

__all__ = [
    "AdminAPIKeyResponse",
    "APIKeyCreate",
    "APIKeyCreatedResponse",
    "APIKeyResponse",
    "APIResponse",
    "ErrorResponse",
    "QRCodeCreate",
    "QRCodeFormats",
    "QRCodeResponse",
    "ShortURLCreate",
    "ShortURLList",
    "ShortURLResponse",
    "AdminStats",
    "UsageLogResponse",
    "AdminUserUpdate",
    "LoginRequest",
    "ProfileResponse",
    "RefreshTokenRequest",
    "TokenResponse",
    "UsageStats",
    "UserCreate",
    "UserResponse",
]
