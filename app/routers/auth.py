"""
Authentication Router

Account session endpoints:
- Registration (username/email/password)
- Login (email/password -> JWT access token, refresh token cookie)
- Token refresh
- Logout
- Current user

Security:
=========
- Passwords are hashed with bcrypt before storage
- Plain text passwords are never logged or stored
- Login failures return one generic 401 whatever the cause
"""

import logging

from fastapi import APIRouter, HTTPException, Request, Response, status

from app.config import get_settings
from app.dependencies import ActiveUser, DbSession
from app.models.user import User
from app.schemas.user import (
    LoginRequest,
    RefreshTokenRequest,
    TokenResponse,
    UserCreate,
    UserResponse,
)
from app.services import credentials
from app.services.rate_limiter import LOGIN_LIMIT, REGISTER_LIMIT, limiter
from app.services.security import (
    create_access_token,
    create_refresh_token,
    verify_token_type,
)

logger = logging.getLogger(__name__)
settings = get_settings()

REFRESH_COOKIE = "refresh_token"

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        401: {"description": "Unauthorized"},
        409: {"description": "Conflict (email/username already exists)"},
    },
)


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token({"sub": str(user.id)}),
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60,
    )


# -------------------------------------------------------------------------
# Registration Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="""
    Create a new identity.

    **Username Requirements:**
    - 3-50 characters
    - Must start with a letter
    - Only letters, numbers, and underscores

    **Password:** at least 6 characters.

    Email and username must be unique, including among deactivated accounts.
    """,
)
@limiter.limit(REGISTER_LIMIT)
def register(
    request: Request,
    user_data: UserCreate,
    db: DbSession,
) -> UserResponse:
    user = credentials.create_identity(
        db,
        username=user_data.username,
        email=user_data.email,
        password=user_data.password,
    )
    return UserResponse.model_validate(user)


# -------------------------------------------------------------------------
# Login Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login with email and password",
    description="""
    Exchange email and password for a JWT access token.

    A refresh token is set as an httpOnly cookie; use `/auth/refresh`
    to get a new access token.

    ```
    Authorization: Bearer <access_token>
    ```
    """,
)
@limiter.limit(LOGIN_LIMIT)
def login(
    request: Request,
    response: Response,
    login_data: LoginRequest,
    db: DbSession,
) -> TokenResponse:
    """
    Authenticate user and return JWT tokens.

    Unknown email, wrong password and deactivated account all produce the
    same 401 (InvalidCredentials).
    """
    user = credentials.verify_credentials(db, login_data.email, login_data.password)

    response.set_cookie(
        key=REFRESH_COOKIE,
        value=create_refresh_token({"sub": str(user.id)}),
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
    )

    logger.info(f"User logged in: {user.id}")
    return _token_response(user)


# -------------------------------------------------------------------------
# Token Refresh Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh access token",
)
def refresh_token(
    request: Request,
    db: DbSession,
    body: RefreshTokenRequest | None = None,
) -> TokenResponse:
    """
    Exchange a refresh token for a new access token.

    The token is read from the request body first, then the cookie.
    """
    token = body.refresh_token if body and body.refresh_token else request.cookies.get(REFRESH_COOKIE)

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token_type(token, "refresh")
    if payload is None or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.get(User, int(payload["sub"]))
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _token_response(user)


# -------------------------------------------------------------------------
# Logout Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout user",
    description="Clear the refresh token cookie. The access token stays valid until it expires.",
)
def logout(
    response: Response,
    current_user: ActiveUser,
) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    logger.info(f"User logged out: {current_user.id}")


# -------------------------------------------------------------------------
# Get Current User Endpoint
# -------------------------------------------------------------------------
@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
)
def get_me(
    current_user: ActiveUser,
) -> UserResponse:
    return UserResponse.model_validate(current_user)
