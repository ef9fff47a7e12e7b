"""
QR Code Generation
Verification QR codes as PIL images, PNG bytes or data URIs
"""

import base64
from io import BytesIO

import qrcode
from PIL import Image


def make_qr_image(payload: str, size: int) -> Image.Image:
    """
    QR code for payload, resized to size x size pixels

    Level M error correction, the same level the printed certificates have
    always used.
    """
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=1,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white").get_image()
    image = image.convert("RGBA")
    # Nearest keeps module edges sharp at any target size
    return image.resize((size, size), Image.Resampling.NEAREST)


def qr_png_bytes(payload: str, size: int = 240) -> bytes:
    buffer = BytesIO()
    make_qr_image(payload, size).save(buffer, format="PNG")
    return buffer.getvalue()


def qr_data_uri(payload: str, size: int) -> str:
    encoded = base64.b64encode(qr_png_bytes(payload, size)).decode("ascii")
    return f"data:image/png;base64,{encoded}"
