"""
Users Router

Profile and usage endpoints for the authenticated identity.

Endpoints:
- GET /users/me - Profile with usage summary
- GET /users/me/usage - Usage summary only
- GET /users/me/usage/logs - Recent usage entries made with your keys
"""

from fastapi import APIRouter, Query

from app.dependencies import ActiveUser, DbSession
from app.schemas import ProfileResponse, UsageLogResponse, UsageStats, UserResponse
from app.services import credentials, usage

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={
        401: {"description": "Not authenticated"},
    },
)


@router.get(
    "/me",
    response_model=ProfileResponse,
    summary="Get current user profile",
    description="Profile, usage summary and number of active API keys.",
)
def get_current_user_profile(
    db: DbSession,
    current_user: ActiveUser,
) -> ProfileResponse:
    return ProfileResponse(
        user=UserResponse.model_validate(current_user),
        usage=UsageStats(**usage.get_user_usage(db, current_user)),
        active_api_keys=len(credentials.list_api_keys(db, current_user.id)),
    )


@router.get(
    "/me/usage",
    response_model=UsageStats,
    summary="Get usage statistics",
)
def get_my_usage(
    db: DbSession,
    current_user: ActiveUser,
) -> UsageStats:
    """
    Usage summary.

    usage_today is the quota counter and resets at the start of each
    quota day; total_requests covers the retained usage log only.
    """
    return UsageStats(**usage.get_user_usage(db, current_user))


@router.get(
    "/me/usage/logs",
    response_model=list[UsageLogResponse],
    summary="List recent usage entries",
)
def get_my_usage_logs(
    db: DbSession,
    current_user: ActiveUser,
    limit: int = Query(default=50, ge=1, le=1000),
) -> list[UsageLogResponse]:
    logs = usage.list_user_logs(db, current_user.id, limit=limit)
    return [UsageLogResponse.model_validate(entry) for entry in logs]
