"""
BoxIT Backend — QR Code Rendering
==================================

What:  Renders the public URL of a box as a PNG QR code data URI.
How:   qrcode builds the matrix (border = margin modules) and draws it with
       Pillow; the image is resized to a square of `size` pixels and
       base64 encoded. Rendering runs in a worker thread.
"""

import asyncio
import base64
import logging
from io import BytesIO

import qrcode
from PIL import Image

from boxit.exceptions import UpstreamServiceError

logger = logging.getLogger(__name__)


class QRRenderer:
    def __init__(self, size: int = 500, margin: int = 2):
        self.size = size
        self.margin = margin

    def render_png(self, url: str) -> bytes:
        qr = qrcode.QRCode(
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=self.margin,
        )
        qr.add_data(url)
        qr.make(fit=True)
        image = qr.make_image(fill_color="black", back_color="white").get_image()
        image = image.convert("RGB").resize((self.size, self.size), Image.NEAREST)

        buffer = BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()

    async def render_data_uri(self, url: str) -> str:
        """
        Returns "data:image/png;base64,...".

        Raises:
            UpstreamServiceError: the renderer failed
        """
        try:
            png = await asyncio.to_thread(self.render_png, url)
        except Exception as e:
            logger.error("QR rendering failed for %s: %s", url, str(e), exc_info=True)
            raise UpstreamServiceError(
                message="Could not generate the QR code image.",
                service="qr",
                context={"error": type(e).__name__},
            )
        return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
