"""
API Key Pydantic Schemas

Security Note:
- APIKeyCreatedResponse carries the full key ONCE, at creation
- APIKeyResponse never includes the key or its hash, only the prefix
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class APIKeyCreate(BaseModel):
    """Schema for creating a new API key."""

    name: str = Field(
        default="Default Key",
        min_length=1,
        max_length=255,
        description="Human-readable name for the API key",
        examples=["Production App", "Testing"],
    )


class APIKeyCreatedResponse(BaseModel):
    """
    Response when a new API key is created.

    IMPORTANT: This is the ONLY time the full key is shown.
    """

    id: int = Field(..., description="API key ID")
    name: str = Field(..., description="API key name")
    key: str = Field(
        ...,
        description="The full API key. SAVE THIS - it won't be shown again!",
    )
    key_prefix: str = Field(..., description="Key prefix for identification")
    created_at: datetime = Field(..., description="Creation timestamp")
    warning: str = Field(
        default="Store this key securely. It will not be shown again.",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "Production App",
                "key": "shd_0a1b2c3d4e5f60718293a4b5c6d7e8f90a1b2c3d4e5f60718293a4b5c6d7e8f9",
                "key_prefix": "shd_0a1b2c3d4e5f",
                "created_at": "2024-01-15T10:30:00Z",
                "warning": "Store this key securely. It will not be shown again.",
            }
        },
    )


class APIKeyResponse(BaseModel):
    """Key metadata. Never includes the actual key."""

    id: int = Field(..., description="API key ID")
    name: str = Field(..., description="API key name")
    key_prefix: str = Field(..., description="First 16 characters of the key")
    is_active: bool = Field(..., description="Whether the key is active")
    rate_limit: int = Field(..., description="Declared requests per minute")
    allowed_endpoints: list[str] = Field(..., description="Declared endpoint allow-list")
    usage_count: int = Field(..., description="Successful validations")
    last_used_at: datetime | None = Field(None, description="When the key was last used")
    revoked_at: datetime | None = Field(None, description="When the key was revoked")
    created_at: datetime = Field(..., description="Creation timestamp")

    model_config = ConfigDict(from_attributes=True)


class AdminAPIKeyResponse(APIKeyResponse):
    """Admin listing entry; adds the owning identity."""

    user_id: int = Field(..., description="Owning identity")
