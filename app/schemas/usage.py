"""
Usage Log Pydantic Schemas
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class UsageLogResponse(BaseModel):
    id: int
    api_key_id: int | None = None
    user_id: int | None = None
    key_display: str = Field(..., description="Masked key, e.g. 'shd_0a1b...'")
    endpoint: str
    ip: str
    user_agent: str
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdminStats(BaseModel):
    total_users: int
    active_users: int
    total_api_keys: int
    active_api_keys: int
    total_requests: int
    today_requests: int
    total_short_urls: int
    endpoint_stats: dict[str, int]
    recent_activity: list[UsageLogResponse]
