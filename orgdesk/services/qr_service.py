"""
QR code generation for report verification.

The encoded payload is always a verification URL (``<base>/verify/<ref>``),
never a bare reference number.
"""

import base64
import logging
from io import BytesIO

import qrcode
from PIL import Image
from qrcode.image.pil import PilImage

logger = logging.getLogger(__name__)

QR_WIDTH_PX = 200
QR_MARGIN_MODULES = 2
QR_FOREGROUND = "#000000"
QR_BACKGROUND = "#FFFFFF"


def build_verification_url(base_url: str, reference_number: str) -> str:
    return f"{(base_url or '').rstrip('/')}/verify/{reference_number}"


def _render_png(payload: str) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=QR_MARGIN_MODULES,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(
        image_factory=PilImage, fill_color=QR_FOREGROUND, back_color=QR_BACKGROUND,
    )
    img = img.resize((QR_WIDTH_PX, QR_WIDTH_PX), Image.Resampling.NEAREST)

    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def generate_qr_code_buffer(payload: str) -> bytes:
    """Encode ``payload`` as a 200×200 PNG and return the raw bytes."""
    if not payload:
        raise ValueError("QR payload must not be empty")
    try:
        return _render_png(payload)
    except (ValueError, OSError) as exc:
        logger.error("QR code generation failed: %s", exc)
        raise ValueError("Failed to generate QR code") from exc


def generate_qr_code(payload: str) -> str:
    """Encode ``payload`` as a ``data:image/png;base64,…`` URL for embedding."""
    png = generate_qr_code_buffer(payload)
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
