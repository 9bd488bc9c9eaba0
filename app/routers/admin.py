"""
Admin Router

System-wide views and identity management. Every endpoint requires an
active user with the admin role (JWT).

Endpoints:
- GET /admin/stats - Totals, per-endpoint counts, latest activity
- GET /admin/api-keys - Every key, revoked ones included
- GET /admin/users - Every identity
- PATCH /admin/users/{user_id} - Adjust daily limit, active flag, role
- GET /admin/usage-logs - Most recent usage entries
"""

import logging

from fastapi import APIRouter, Query, Request
from sqlalchemy import select

from app.config import get_settings
from app.dependencies import AdminUser, DbSession
from app.models import User
from app.schemas import (
    AdminAPIKeyResponse,
    AdminStats,
    AdminUserUpdate,
    UsageLogResponse,
    UserResponse,
)
from app.services import credentials, usage
from app.services.rate_limiter import limiter

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Admin privileges required"},
    },
)


@router.get("/stats", response_model=AdminStats, summary="System statistics")
def get_stats(db: DbSession, admin: AdminUser) -> AdminStats:
    return AdminStats.model_validate(usage.get_admin_stats(db), from_attributes=True)


@router.get(
    "/api-keys",
    response_model=list[AdminAPIKeyResponse],
    summary="List all API keys",
    description="Every key in the system. Revoked keys are included with revoked_at set.",
)
def list_all_keys(db: DbSession, admin: AdminUser) -> list[AdminAPIKeyResponse]:
    return [AdminAPIKeyResponse.model_validate(k) for k in credentials.list_all_api_keys(db)]


@router.get("/users", response_model=list[UserResponse], summary="List all users")
def list_users(db: DbSession, admin: AdminUser) -> list[UserResponse]:
    users = db.execute(select(User).order_by(User.id)).scalars().all()
    return [UserResponse.model_validate(u) for u in users]


@router.patch("/users/{user_id}", response_model=UserResponse, summary="Update a user")
@limiter.limit(settings.rate_limit_write)
def update_user(
    request: Request,
    user_id: int,
    update_data: AdminUserUpdate,
    db: DbSession,
    admin: AdminUser,
) -> UserResponse:
    """
    Apply an admin update.

    Lowering daily_limit takes effect on the next request; the current
    counter is left alone.
    """
    user = credentials.get_user(db, user_id)

    changes = update_data.model_dump(exclude_unset=True, exclude_none=True)
    if "role" in changes:
        changes["role"] = changes["role"].value
    for field, value in changes.items():
        setattr(user, field, value)

    db.commit()
    db.refresh(user)

    logger.info(f"Admin {admin.id} updated user {user_id}: {sorted(changes)}")
    return UserResponse.model_validate(user)


@router.get(
    "/usage-logs",
    response_model=list[UsageLogResponse],
    summary="Recent usage entries",
)
def list_usage_logs(
    db: DbSession,
    admin: AdminUser,
    limit: int = Query(default=100, ge=1, le=1000),
) -> list[UsageLogResponse]:
    return [UsageLogResponse.model_validate(e) for e in usage.list_recent_logs(db, limit)]
