"""Default scene image used for fresh sessions."""

from __future__ import annotations

import io
import logging
import os
from functools import lru_cache
from typing import Optional, Tuple

from PIL import Image, ImageDraw

from models.design_models import EncodedImage
from utils.media_validation import load_image_file

LOGGER = logging.getLogger(__name__)
DEFAULT_SCENE_IMAGE_PATH = os.getenv("DEFAULT_SCENE_IMAGE_PATH")


def _placeholder(size: Tuple[int, int], fill: Tuple[int, int, int], accent: Tuple[int, int, int]) -> EncodedImage:
	"""Render a neutral PNG so a fresh session always has something to show."""
	img = Image.new("RGB", size, fill)
	draw = ImageDraw.Draw(img)
	width, height = size
	draw.rectangle((width // 8, height // 8, width - width // 8, height - height // 8), outline=accent, width=4)
	out_io = io.BytesIO()
	img.save(out_io, format="PNG", optimize=True)
	return EncodedImage.from_bytes(out_io.getvalue(), mime_type="image/png")


def _from_path(path: Optional[str]) -> Optional[EncodedImage]:
	if not path:
		return None
	try:
		return load_image_file(path)
	except (OSError, ValueError) as exc:
		LOGGER.warning("Ignoring default image at %s: %s", path, exc)
		return None


@lru_cache(maxsize=1)
def default_scene_image() -> EncodedImage:
	return _from_path(DEFAULT_SCENE_IMAGE_PATH) or _placeholder((512, 288), (226, 222, 214), (150, 144, 132))

