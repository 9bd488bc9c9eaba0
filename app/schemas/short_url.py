"""
Short URL Pydantic Schemas

Request fields accept both snake_case and the camelCase names used by
existing clients (customSlug). The apiKey body field is read by the
authorization dependency and ignored here.
"""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field, HttpUrl, TypeAdapter, field_validator

from app.models import ShortURL
from app.services.short_urls import build_short_url, parse_expires

_http_url = TypeAdapter(HttpUrl)


class ShortURLCreate(BaseModel):
    url: str = Field(
        ...,
        max_length=2048,
        description="http(s) URL to shorten",
        examples=["https://example.com/some/long/path"],
    )
    custom_slug: str | None = Field(
        default=None,
        max_length=64,
        validation_alias=AliasChoices("custom_slug", "customSlug"),
        description="Custom short code; lowercased, other characters become '-'",
    )
    expires: str | None = Field(
        default=None,
        description="1h, 24h, 7d, 30d or an ISO-8601 datetime",
        examples=["24h", "2030-01-01T00:00:00Z"],
    )
    password: str | None = Field(
        default=None,
        min_length=1,
        max_length=72,
        description="Require this password on redirect",
    )

    @field_validator("url")
    @classmethod
    def url_must_be_http(cls, v: str) -> str:
        parsed = _http_url.validate_python(v)
        if parsed.scheme not in ("http", "https"):
            raise ValueError("URL must use http or https")
        return v

    @field_validator("expires")
    @classmethod
    def expires_must_parse(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        try:
            parse_expires(v.strip())
        except ValueError as e:
            raise ValueError("expires must be 1h, 24h, 7d, 30d or an ISO-8601 datetime") from e
        return v.strip()


class ShortURLResponse(BaseModel):
    id: int
    short_code: str
    original_url: str
    short_url: str
    created_at: datetime
    expires_at: datetime | None = None
    click_count: int
    is_active: bool
    has_password: bool
    last_accessed_at: datetime | None = None

    @classmethod
    def from_model(cls, short_url: ShortURL) -> "ShortURLResponse":
        return cls(
            id=short_url.id,
            short_code=short_url.short_code,
            original_url=short_url.original_url,
            short_url=build_short_url(short_url.short_code),
            created_at=short_url.created_at,
            expires_at=short_url.expires_at,
            click_count=short_url.click_count,
            is_active=short_url.is_active,
            has_password=short_url.password_hash is not None,
            last_accessed_at=short_url.last_accessed_at,
        )


class ShortURLList(BaseModel):
    count: int
    urls: list[ShortURLResponse]
