"""
Tools Router

Metered utility endpoints. Every call needs an API key and counts against
the owning identity's daily quota; each one is also written to the usage
log under its endpoint name.

Endpoints:
- GET /tools/list - Tool catalog (key required, not metered)
- POST /tools/qrcode - Generate a QR code (qrcode_generate)
- GET /tools/qrcode - Same, from query parameters (qrcode_generate)
- POST /tools/shorturl - Create a short link (shorturl_create)
- GET /tools/shorturl/info - Inspect a short link (shorturl_info)
- GET /tools/shorturl/list - Links created by your keys (shorturl_list)
- GET /s/{short_code} - Public redirect (no key)
"""

import logging
from typing import Any

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import RedirectResponse

from app.dependencies import DbSession, RequireAPIKey, ValidAPIKey
from app.schemas import (
    APIResponse,
    ErrorResponse,
    QRCodeCreate,
    QRCodeResponse,
    ShortURLCreate,
    ShortURLList,
    ShortURLResponse,
)
from app.schemas.qrcode import MAX_SIZE, MIN_SIZE
from app.services import qrcodes, short_urls, usage
from app.services.authorization import AuthContext, admit
from app.services.rate_limiter import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/tools",
    tags=["Tools"],
    responses={
        401: {"model": ErrorResponse, "description": "API key missing or invalid"},
        429: {"model": ErrorResponse, "description": "Daily quota exceeded"},
    },
)

# Served at the application root, outside the /api prefix
redirect_router = APIRouter(tags=["Short URLs"])

TOOL_CATALOG = [
    {
        "name": "QR Code Generator",
        "endpoint": "/tools/qrcode",
        "methods": ["POST", "GET"],
        "description": "Generate QR codes from text or URLs as PNG and SVG",
        "parameters": {
            "text": "required (max 1000 characters)",
            "size": "optional (pixels, default 300)",
            "margin": "optional (modules, default 1)",
            "dark": "optional (#rrggbb)",
            "light": "optional (#rrggbb)",
        },
    },
    {
        "name": "Short URL",
        "endpoint": "/tools/shorturl",
        "methods": ["POST"],
        "description": "Create short links with optional custom slug, expiry and password",
        "parameters": {
            "url": "required",
            "custom_slug": "optional",
            "expires": "optional (1h, 24h, 7d, 30d or ISO-8601)",
            "password": "optional",
        },
    },
    {
        "name": "Short URL info",
        "endpoint": "/tools/shorturl/info",
        "methods": ["GET"],
        "description": "Click count and status of a short link",
        "parameters": {"short_code": "required"},
    },
    {
        "name": "Short URL list",
        "endpoint": "/tools/shorturl/list",
        "methods": ["GET"],
        "description": "Short links created by your account",
        "parameters": {},
    },
]


def _record(db, request: Request, auth: AuthContext, endpoint: str, **details: Any) -> None:
    """
    Take the caller's quota slot and log the call.

    Runs at the top of each handler, after FastAPI has validated the
    input, so rejected requests neither count nor leave an entry.
    """
    admit(db, auth)
    context = {
        "ip": get_client_ip(request),
        "user_agent": request.headers.get("user-agent"),
        **details,
    }
    usage.record(db, auth.presented_key, endpoint, context, auth=auth, count_quota=False)


@router.get("/list", summary="List available tools")
def list_tools(auth: ValidAPIKey) -> dict:
    return {
        "success": True,
        "data": {"tools": TOOL_CATALOG, "total": len(TOOL_CATALOG)},
    }


def _generate_qr_code(db, request: Request, auth: AuthContext, body: QRCodeCreate) -> APIResponse[QRCodeResponse]:
    _record(db, request, auth, "qrcode_generate", text_length=len(body.text), size=body.size)
    result = qrcodes.generate_qr_code(
        body.text,
        size=body.size,
        margin=body.margin,
        dark=body.dark,
        light=body.light,
    )
    return APIResponse(data=QRCodeResponse.from_result(result))


@router.post(
    "/qrcode",
    response_model=APIResponse[QRCodeResponse],
    summary="Generate a QR code",
)
def create_qr_code(
    request: Request,
    body: QRCodeCreate,
    db: DbSession,
    auth: RequireAPIKey,
) -> APIResponse[QRCodeResponse]:
    """
    Render text as a QR code.

    The response carries a PNG data URL, the raw SVG document and an SVG
    data URL.
    """
    return _generate_qr_code(db, request, auth, body)


@router.get(
    "/qrcode",
    response_model=APIResponse[QRCodeResponse],
    summary="Generate a QR code from query parameters",
)
def get_qr_code(
    request: Request,
    db: DbSession,
    auth: RequireAPIKey,
    text: str = Query(..., min_length=1, max_length=qrcodes.MAX_TEXT_LENGTH),
    size: int = Query(default=qrcodes.DEFAULT_SIZE, ge=MIN_SIZE, le=MAX_SIZE),
) -> APIResponse[QRCodeResponse]:
    return _generate_qr_code(db, request, auth, QRCodeCreate(text=text, size=size))


@router.post(
    "/shorturl",
    response_model=APIResponse[ShortURLResponse],
    summary="Create a short URL",
    responses={409: {"model": ErrorResponse, "description": "Custom slug already in use"}},
)
def create_short_url(
    request: Request,
    body: ShortURLCreate,
    db: DbSession,
    auth: RequireAPIKey,
) -> APIResponse[ShortURLResponse]:
    _record(db, request, auth, "shorturl_create", custom_slug=body.custom_slug)
    expires_at = short_urls.parse_expires(body.expires) if body.expires else None

    short_url = short_urls.create_short_url(
        db,
        body.url,
        user_id=auth.user.id,
        api_key_id=auth.key_id,
        custom_slug=body.custom_slug,
        expires_at=expires_at,
        password=body.password,
    )

    return APIResponse(data=ShortURLResponse.from_model(short_url))


@router.get(
    "/shorturl/info",
    response_model=APIResponse[ShortURLResponse],
    summary="Get short URL info",
    responses={
        404: {"model": ErrorResponse, "description": "Unknown code"},
        410: {"model": ErrorResponse, "description": "Expired or inactive"},
    },
)
def get_short_url_info(
    request: Request,
    db: DbSession,
    auth: RequireAPIKey,
    short_code: str = Query(..., min_length=1),
) -> APIResponse[ShortURLResponse]:
    _record(db, request, auth, "shorturl_info", short_code=short_code)
    short_url = short_urls.get_by_code(db, short_code)
    return APIResponse(data=ShortURLResponse.from_model(short_url))


@router.get(
    "/shorturl/list",
    response_model=APIResponse[ShortURLList],
    summary="List your short URLs",
)
def list_short_urls(
    request: Request,
    db: DbSession,
    auth: RequireAPIKey,
) -> APIResponse[ShortURLList]:
    _record(db, request, auth, "shorturl_list")
    urls = [ShortURLResponse.from_model(u) for u in short_urls.list_for_user(db, auth.user.id)]
    return APIResponse(data=ShortURLList(count=len(urls), urls=urls))


@redirect_router.get(
    "/s/{short_code}",
    status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    summary="Follow a short URL",
    responses={
        401: {"model": ErrorResponse, "description": "Password required"},
        404: {"model": ErrorResponse, "description": "Unknown code"},
        410: {"model": ErrorResponse, "description": "Expired or inactive"},
    },
)
def follow_short_url(
    short_code: str,
    db: DbSession,
    password: str | None = Query(default=None),
) -> RedirectResponse:
    target = short_urls.resolve_and_click(db, short_code, password)
    return RedirectResponse(target, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
