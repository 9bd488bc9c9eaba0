"""
FastAPI Dependencies Module

Dependencies are reusable components injected into route handlers.
FastAPI's Depends() function manages their lifecycle.

Two authentication schemes live here:
- JWT bearer tokens for account management (keys, profile, admin)
- API keys for the metered tool endpoints, which also enforce the
  per-identity daily quota

Common Dependency Patterns:
- Database sessions (per-request)
- Authentication (verify user / API key)
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.models.user import User
from app.services.authorization import AuthContext, authenticate, authorize, extract_api_key

settings = get_settings()

# =============================================================================
# Type Aliases with Annotated
# =============================================================================
# Instead of writing:
#   def list_keys(db: Session = Depends(get_db)):
#
# You can write:
#   def list_keys(db: DbSession):

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# API Key Authentication (metered endpoints)
# =============================================================================
async def get_presented_api_key(request: Request) -> str | None:
    """
    Extract the API key from header, query string or body.

    Async because reading a JSON or form body needs await; the body is
    cached on the request, so the route still receives it.
    """
    return await extract_api_key(request)


def require_api_key(
    request: Request,
    response: Response,
    db: DbSession,
    presented_key: Annotated[str | None, Depends(get_presented_api_key)],
) -> AuthContext:
    """
    Authenticate the API key and check the owner's daily quota.

    The slot itself is reserved by the handler through
    authorization.admit(), after FastAPI has validated the request body.

    On success the context is also stored on request.state.auth and the
    response carries an X-API-Key-ID header.

    Raises:
        MissingApiKey / InvalidApiKey: 401
        QuotaExceeded: 429
    """
    auth = authorize(db, presented_key)

    request.state.auth = auth
    response.headers["X-API-Key-ID"] = str(auth.key_id)
    return auth


RequireAPIKey = Annotated[AuthContext, Depends(require_api_key)]


def require_valid_api_key(
    db: DbSession,
    presented_key: Annotated[str | None, Depends(get_presented_api_key)],
) -> AuthContext:
    """Authenticate the API key without counting the request against the quota."""
    return authenticate(db, presented_key)


ValidAPIKey = Annotated[AuthContext, Depends(require_valid_api_key)]


# =============================================================================
# JWT Authentication (User Authentication)
# =============================================================================
# OAuth2PasswordBearer extracts the token from "Authorization: Bearer <token>"
# and returns 401 if the header is missing.

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/login",
    auto_error=True,
)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
):
    """
    Extract and validate the current user from a JWT access token.

    Raises:
        HTTPException: 401 if the token is invalid or the user is gone
    """
    from app.services.security import verify_token_type

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = verify_token_type(token, "access")
    if payload is None:
        raise credentials_exception

    user_id: str = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    stmt = select(User).where(User.id == int(user_id))
    user = db.execute(stmt).scalar_one_or_none()

    if user is None:
        raise credentials_exception

    return user


def get_current_active_user(
    current_user=Depends(get_current_user),
):
    """
    Verify the current user is active.

    Raises:
        HTTPException: 403 if the account was deactivated
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return current_user


def get_current_admin(
    current_user=Depends(get_current_active_user),
):
    """
    Verify the current user holds the admin role.

    Raises:
        HTTPException: 403 for non-admin users
    """
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user


CurrentUser = Annotated[User, Depends(get_current_user)]
ActiveUser = Annotated[User, Depends(get_current_active_user)]
AdminUser = Annotated[User, Depends(get_current_admin)]
