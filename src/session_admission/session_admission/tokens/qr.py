from __future__ import annotations

import base64
import io
from urllib.parse import urlencode

import qrcode


def build_qr_payload(base_url: str, session_id: str, token: str) -> str:
    """Link encoded into the QR code: ``<base>/attend?session=<id>&token=<token>``."""
    query = urlencode({"session": session_id, "token": token})
    return f"{base_url.rstrip('/')}/attend?{query}"


def render_qr_data_url(payload: str, *, box_size: int = 10, border: int = 2) -> str:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=box_size,
        border=border,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="#1a1a2e", back_color="#ffffff")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")
