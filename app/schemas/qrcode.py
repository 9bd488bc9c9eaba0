"""
QR Code Pydantic Schemas
"""

from datetime import datetime

from pydantic import BaseModel, Field

from app.services.qrcodes import (
    DEFAULT_DARK,
    DEFAULT_LIGHT,
    DEFAULT_MARGIN,
    DEFAULT_SIZE,
    MAX_TEXT_LENGTH,
    GeneratedQRCode,
)

HEX_COLOR = r"^#[0-9a-fA-F]{6}$"
MIN_SIZE = 64
MAX_SIZE = 2000
MAX_MARGIN = 20


class QRCodeCreate(BaseModel):
    text: str = Field(
        ...,
        min_length=1,
        max_length=MAX_TEXT_LENGTH,
        description="Text or URL to encode",
        examples=["https://example.com"],
    )
    size: int = Field(default=DEFAULT_SIZE, ge=MIN_SIZE, le=MAX_SIZE, description="PNG edge in pixels")
    margin: int = Field(default=DEFAULT_MARGIN, ge=0, le=MAX_MARGIN, description="Quiet zone in modules")
    dark: str = Field(default=DEFAULT_DARK, pattern=HEX_COLOR, description="Module color")
    light: str = Field(default=DEFAULT_LIGHT, pattern=HEX_COLOR, description="Background color")


class QRCodeFormats(BaseModel):
    png: str
    svg: str


class QRCodeResponse(BaseModel):
    id: str
    type: str = "qrcode"
    text: str
    size: int
    margin: int
    dark: str
    light: str
    data_url: str = Field(..., description="PNG as a data URL")
    svg: str = Field(..., description="SVG document")
    formats: QRCodeFormats
    created_at: datetime

    @classmethod
    def from_result(cls, result: GeneratedQRCode) -> "QRCodeResponse":
        return cls(
            id=result.id,
            text=result.text,
            size=result.size,
            margin=result.margin,
            dark=result.dark,
            light=result.light,
            data_url=result.png_data_url,
            svg=result.svg,
            formats=QRCodeFormats(png=result.png_data_url, svg=result.svg_data_url),
            created_at=result.created_at,
        )
