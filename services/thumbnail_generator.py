"""Thumbnail generator service.

Provides a small OOP wrapper around Pillow to create history previews
from encoded images. The resulting thumbnail fits within 160x160 pixels
and is returned as a PNG `EncodedImage`.

Public class: `ThumbnailGenerator`

Example:
    tg = ThumbnailGenerator(max_size=(160, 160))
    thumb = tg.create_thumbnail(snapshot.composite_image)
"""
from __future__ import annotations

import io
from typing import Tuple

from PIL import Image

from models.design_models import EncodedImage


class ThumbnailGenerator:
    """Generate thumbnails from encoded images.

    Args:
        max_size: Maximum width and height for the thumbnail. Defaults to (160, 160).
        background: Optional background color used when flattening images with alpha.
            If None, images with alpha are flattened against white.
    """

    def __init__(self, max_size: Tuple[int, int] = (160, 160), background: Tuple[int, int, int] | None = None):
        self.max_size = max_size
        self.background = background or (255, 255, 255)

    def create_thumbnail(self, image: EncodedImage) -> EncodedImage:
        """Return a PNG thumbnail of `image` that preserves its aspect ratio.

        Raises:
            ValueError: If the payload is not base64 or not a supported image format.
        """
        raw = image.decode()
        try:
            src = Image.open(io.BytesIO(raw))
        except Exception as exc:
            raise ValueError(f"{image.mime_type} payload is not a supported image format") from exc

        src = src.convert("RGBA")
        src.thumbnail(self.max_size, Image.LANCZOS)

        flattened = Image.new("RGB", src.size, self.background)
        flattened.paste(src, mask=src.split()[3])

        out_io = io.BytesIO()
        flattened.save(out_io, format="PNG", optimize=True)
        return EncodedImage.from_bytes(out_io.getvalue(), mime_type="image/png")
