"""
API Keys Router

Endpoints for an identity to manage its own API keys.

Security Notes:
- All endpoints require a JWT access token (not an API key)
- The full key is only shown once, in the create response
- Keys are stored as bcrypt hashes (never plain text)
- Revoked keys are kept and can be listed with include_revoked=true
"""

from fastapi import APIRouter, Query, Request, status

from app.config import get_settings
from app.dependencies import ActiveUser, DbSession
from app.schemas import APIKeyCreate, APIKeyCreatedResponse, APIKeyResponse
from app.services import credentials
from app.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/api-keys",
    tags=["API Keys"],
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "API key not found"},
    },
)


@router.post(
    "",
    response_model=APIKeyCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new API key",
    description="Issue a new API key for the current user. "
                "The full key is only shown once in the response - save it securely!",
)
@limiter.limit(settings.rate_limit_write)
def create_new_api_key(
    request: Request,
    db: DbSession,
    current_user: ActiveUser,
    key_data: APIKeyCreate | None = None,
) -> APIKeyCreatedResponse:
    name = key_data.name if key_data else APIKeyCreate().name
    issued = credentials.issue_api_key(db, current_user.id, name)

    return APIKeyCreatedResponse(
        id=issued.id,
        name=issued.name,
        key=issued.plaintext_key,
        key_prefix=issued.key_prefix,
        created_at=issued.created_at,
    )


@router.get(
    "",
    response_model=list[APIKeyResponse],
    summary="List your API keys",
    description="Key metadata only; never the keys themselves.",
)
def list_api_keys(
    db: DbSession,
    current_user: ActiveUser,
    include_revoked: bool = Query(default=False, description="Also list revoked keys"),
) -> list[APIKeyResponse]:
    keys = credentials.list_api_keys(db, current_user.id, include_revoked=include_revoked)
    return [APIKeyResponse.model_validate(k) for k in keys]


@router.get(
    "/{key_id}",
    response_model=APIKeyResponse,
    summary="Get API key details",
)
def get_api_key(
    key_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> APIKeyResponse:
    api_key = credentials.get_api_key_for_user(db, key_id, current_user.id)
    return APIKeyResponse.model_validate(api_key)


@router.delete(
    "/{key_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke an API key",
    description="Deactivate one of your active keys. The record is kept; "
                "the key stops authenticating immediately.",
)
@limiter.limit(settings.rate_limit_write)
def revoke_key(
    request: Request,
    key_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> None:
    credentials.revoke_api_key(db, key_id, current_user.id)
