"""
User Pydantic Schemas

These schemas define the shape of data for identity-related operations.

Schemas:
- UserCreate: Registration data (username, email, password)
- LoginRequest: Email/password login
- TokenResponse / RefreshTokenRequest: JWT session handling
- UserResponse: Public user data (never exposes the password hash)
- UsageStats / ProfileResponse: Usage summary for the profile endpoints
- AdminUserUpdate: Fields an admin may change on an identity
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.user import UserRole


class UserBase(BaseModel):
    """Fields shared by registration and responses."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["alice@example.com"],
    )

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        description="Unique username (3-50 characters, alphanumeric and underscores)",
        examples=["alice", "bob_42"],
    )

    @field_validator("username")
    @classmethod
    def username_must_be_valid(cls, v: str) -> str:
        """
        Validate username format.

        Rules:
        - Only letters, numbers and underscores
        - Must start with a letter
        """
        if not re.match(r"^[a-zA-Z][a-zA-Z0-9_]*$", v):
            raise ValueError(
                "Username must start with a letter and contain only "
                "letters, numbers, and underscores"
            )
        return v.lower()


class UserCreate(UserBase):
    """Schema for registration."""

    password: str = Field(
        ...,
        min_length=6,
        max_length=72,
        description="Password (6-72 characters)",
        examples=["p4ssw0rd"],
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class LoginRequest(BaseModel):
    """Email/password pair exchanged for a JWT access token."""

    email: EmailStr = Field(..., examples=["alice@example.com"])
    password: str = Field(..., min_length=1, max_length=72)


class TokenResponse(BaseModel):
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Always 'bearer'")
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class RefreshTokenRequest(BaseModel):
    refresh_token: str | None = Field(
        default=None,
        description="Refresh token; the refresh_token cookie is used when omitted",
    )


class UserResponse(BaseModel):
    """
    Schema for user responses.

    SECURITY: Never includes the password hash.
    """

    id: int = Field(..., description="Unique user identifier", examples=[1])
    email: EmailStr = Field(..., description="User's email address")
    username: str = Field(..., description="Unique username")
    role: UserRole = Field(..., description="user or admin")
    is_active: bool = Field(..., description="Whether the account is active")
    daily_limit: int = Field(..., description="Admitted requests allowed per day")
    created_at: datetime = Field(..., description="When the user registered")
    last_login_at: datetime | None = Field(default=None, description="Last successful login")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "email": "alice@example.com",
                "username": "alice",
                "role": "user",
                "is_active": True,
                "daily_limit": 1000,
                "created_at": "2024-01-15T10:30:00Z",
                "last_login_at": None,
            }
        },
    )


class UsageStats(BaseModel):
    """
    Usage summary for one identity.

    usage_today is the quota counter; today_requests counts retained log
    entries and can be lower once old entries have been trimmed.
    """

    total_requests: int
    today_requests: int
    daily_limit: int
    usage_today: int
    last_request: datetime | None = None


class ProfileResponse(BaseModel):
    user: UserResponse
    usage: UsageStats
    active_api_keys: int


class AdminUserUpdate(BaseModel):
    """Partial update applied by an admin. Omitted fields are left alone."""

    daily_limit: int | None = Field(default=None, ge=0, description="New daily ceiling")
    is_active: bool | None = Field(default=None, description="Activate or deactivate")
    role: UserRole | None = Field(default=None, description="user or admin")
