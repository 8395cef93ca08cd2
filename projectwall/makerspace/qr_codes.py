"""
QR code generation for project URLs
"""

import base64
import io
import logging
from pathlib import Path
from typing import Optional

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from . import config

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:image/png;base64,"


def render_qr_png(data: str, width: int = config.QR_WIDTH, margin: int = config.QR_MARGIN) -> bytes:
    """Render data as a black-on-white PNG roughly width pixels wide."""
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, border=margin)
    qr.add_data(data)
    qr.make(fit=True)

    # Size the modules so the whole symbol (quiet zone included) fits width
    qr.box_size = max(1, width // (qr.modules_count + 2 * margin))

    image = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    image.save(buffer)
    return buffer.getvalue()


def generate_qr_code(url: str, project_id: str, output_dir: Optional[Path] = config.QR_CODE_DIR) -> str:
    """
    Create the QR code for a project.

    Args:
        url: Project URL to encode
        project_id: Used for the PNG filename
        output_dir: Where to write <project_id>.png, None to skip the file

    Returns:
        PNG data URL, or an empty string if generation failed
    """
    try:
        png = render_qr_png(url)

        if output_dir:
            output_dir = Path(output_dir)
            output_dir.mkdir(parents=True, exist_ok=True)
            (output_dir / f"{project_id}.png").write_bytes(png)

        return DATA_URL_PREFIX + base64.b64encode(png).decode("ascii")
    except Exception as e:
        logger.error(f"Failed to generate QR code for {url}: {e}")
        return ""
