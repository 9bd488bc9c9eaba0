"""
QR Code Service

Renders text as a QR code in two formats, a PNG data URL and an SVG
document, using the qrcode library (Pillow backend for PNG).

High error correction is used so codes survive print damage.
"""

import base64
import io
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime

import qrcode
from PIL import Image
from qrcode.image.svg import SvgPathImage

from app.utils import utcnow

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 1000
DEFAULT_SIZE = 300
DEFAULT_MARGIN = 1
DEFAULT_DARK = "#000000"
DEFAULT_LIGHT = "#ffffff"


@dataclass(frozen=True)
class GeneratedQRCode:
    text: str
    size: int
    margin: int
    dark: str
    light: str
    png_data_url: str
    svg: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utcnow)

    @property
    def svg_data_url(self) -> str:
        encoded = base64.b64encode(self.svg.encode("utf-8")).decode("ascii")
        return f"data:image/svg+xml;base64,{encoded}"


def _build(text: str, margin: int) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=10,
        border=margin,
    )
    qr.add_data(text)
    qr.make(fit=True)
    return qr


def _render_png(qr: qrcode.QRCode, size: int, dark: str, light: str) -> str:
    image = qr.make_image(fill_color=dark, back_color=light).get_image()
    image = image.convert("RGB").resize((size, size), Image.Resampling.NEAREST)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def _render_svg(qr: qrcode.QRCode, dark: str, light: str) -> str:
    factory = type(
        "ColoredSvgPathImage",
        (SvgPathImage,),
        {
            "QR_PATH_STYLE": {**SvgPathImage.QR_PATH_STYLE, "fill": dark},
            "background": light,
        },
    )
    buffer = io.BytesIO()
    qr.make_image(image_factory=factory).save(buffer)
    return buffer.getvalue().decode("utf-8")


def generate_qr_code(
    text: str,
    size: int = DEFAULT_SIZE,
    margin: int = DEFAULT_MARGIN,
    dark: str = DEFAULT_DARK,
    light: str = DEFAULT_LIGHT,
) -> GeneratedQRCode:
    """
    Render text as a QR code.

    Args:
        text: Content to encode, at most MAX_TEXT_LENGTH characters
        size: Edge length of the PNG in pixels
        margin: Quiet zone in modules
        dark: Module color (#rrggbb)
        light: Background color (#rrggbb)

    Raises:
        ValueError: text is empty or too long
    """
    if not text or len(text) > MAX_TEXT_LENGTH:
        raise ValueError(f"text must be 1-{MAX_TEXT_LENGTH} characters")

    qr = _build(text, margin)
    result = GeneratedQRCode(
        text=text,
        size=size,
        margin=margin,
        dark=dark,
        light=light,
        png_data_url=_render_png(qr, size, dark, light),
        svg=_render_svg(qr, dark, light),
    )

    logger.info(f"QR code generated: {len(text)} chars, {size}px")
    return result
