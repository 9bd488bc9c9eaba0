"""
Short URL Service

Creates short links and resolves them for the public redirect.

Short codes are either a normalized custom slug or 8 random hex
characters. Expired or deactivated links answer 410, unknown ones 404.
"""

import logging
import re
import secrets
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.config import get_settings
from app.exceptions import NotFound, ShortUrlGone, ShortUrlPasswordRequired, SlugTaken
from app.models import ShortURL
from app.services.security import hash_secret, verify_secret
from app.utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)
settings = get_settings()

EXPIRY_PRESETS = {
    "1h": timedelta(hours=1),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}

_SLUG_INVALID_CHARS = re.compile(r"[^a-z0-9_-]")
_RANDOM_CODE_ATTEMPTS = 5


def normalize_slug(slug: str) -> str:
    """
    Lowercase a custom slug and replace disallowed characters with "-".

    Example:
        >>> normalize_slug(" My Link! ")
        'my-link-'
    """
    return _SLUG_INVALID_CHARS.sub("-", slug.strip().lower())


def parse_expires(expires: str, now: datetime | None = None) -> datetime:
    """
    Turn an expiry preset ("1h", "24h", "7d", "30d") or an ISO-8601
    datetime into an aware expiry timestamp.

    Naive ISO datetimes are taken as UTC.

    Raises:
        ValueError: expires is neither a preset nor a parseable datetime
    """
    now = now or utcnow()
    if expires in EXPIRY_PRESETS:
        return now + EXPIRY_PRESETS[expires]
    return ensure_utc(datetime.fromisoformat(expires))


def build_short_url(short_code: str) -> str:
    return f"{settings.base_url.rstrip('/')}/s/{short_code}"


def is_expired(short_url: ShortURL, now: datetime | None = None) -> bool:
    expires_at = ensure_utc(short_url.expires_at)
    return expires_at is not None and expires_at < (now or utcnow())


def _code_exists(db: Session, short_code: str) -> bool:
    stmt = select(ShortURL.id).where(ShortURL.short_code == short_code)
    return db.execute(stmt).first() is not None


def _generate_code(db: Session) -> str:
    for _ in range(_RANDOM_CODE_ATTEMPTS):
        code = secrets.token_hex(4)
        if not _code_exists(db, code):
            return code
    # 8 hex chars collided repeatedly; fall back to a longer code
    return secrets.token_hex(8)


def create_short_url(
    db: Session,
    url: str,
    *,
    user_id: int | None = None,
    api_key_id: int | None = None,
    custom_slug: str | None = None,
    expires_at: datetime | None = None,
    password: str | None = None,
) -> ShortURL:
    """
    Store a new short link.

    Raises:
        SlugTaken: the normalized custom slug is already in use
    """
    if custom_slug and custom_slug.strip():
        short_code = normalize_slug(custom_slug)
        if _code_exists(db, short_code):
            raise SlugTaken()
    else:
        short_code = _generate_code(db)

    short_url = ShortURL(
        short_code=short_code,
        original_url=url,
        password_hash=hash_secret(password) if password else None,
        click_count=0,
        is_active=True,
        expires_at=expires_at,
        api_key_id=api_key_id,
        user_id=user_id,
        created_at=utcnow(),
    )
    db.add(short_url)
    db.commit()
    db.refresh(short_url)

    logger.info(f"Short URL created: {short_code} -> {url[:50]}")
    return short_url


def get_by_code(db: Session, short_code: str) -> ShortURL:
    """
    Look up a link that can still be followed.

    Raises:
        NotFound: no link with this code
        ShortUrlGone: the link expired or was deactivated
    """
    stmt = select(ShortURL).where(ShortURL.short_code == short_code)
    short_url = db.execute(stmt).scalar_one_or_none()

    if short_url is None:
        raise NotFound("Short URL not found")
    if is_expired(short_url):
        raise ShortUrlGone("Short URL has expired")
    if not short_url.is_active:
        raise ShortUrlGone("Short URL is inactive")
    return short_url


def list_for_user(db: Session, user_id: int) -> list[ShortURL]:
    stmt = (
        select(ShortURL)
        .where(ShortURL.user_id == user_id)
        .order_by(ShortURL.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def resolve_and_click(db: Session, short_code: str, password: str | None = None) -> str:
    """
    Resolve a code to its target URL and count the click.

    The click counter is incremented in SQL so concurrent redirects are
    all counted.

    Raises:
        NotFound, ShortUrlGone: see get_by_code()
        ShortUrlPasswordRequired: protected link without the right password
    """
    short_url = get_by_code(db, short_code)

    if short_url.password_hash and not (
        password and verify_secret(password, short_url.password_hash)
    ):
        raise ShortUrlPasswordRequired()

    db.execute(
        update(ShortURL)
        .where(ShortURL.id == short_url.id)
        .values(click_count=ShortURL.click_count + 1, last_accessed_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()

    return short_url.original_url
