"""Validation helpers for uploaded images."""

import base64
import io

from fastapi import HTTPException, UploadFile
from PIL import Image, UnidentifiedImageError

from models.design_errors import ImageDecodeError
from models.design_models import EncodedImage

ALLOWED_IMAGE_TYPES = {
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/webp",
    "image/gif",
}

MIME_BY_FORMAT = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}


def ensure_binary_image(raw: bytes) -> bytes:
    """Return raw image bytes, decoding base64 or data URL text when necessary."""
    stripped = raw.strip()
    if stripped.startswith(b"data:"):
        return EncodedImage.from_data_url(stripped.decode("utf-8", errors="ignore")).decode()
    try:
        return base64.b64decode(stripped, validate=True)
    except Exception:
        return raw


def encode_image_bytes(raw: bytes) -> EncodedImage:
    """Verify that bytes hold a supported image and return them as an `EncodedImage`.

    Raises:
        ImageDecodeError: If the payload is empty or not a readable image.
    """
    if not raw:
        raise ImageDecodeError("Image payload is empty.")
    binary = ensure_binary_image(raw)
    try:
        with Image.open(io.BytesIO(binary)) as img:
            img.verify()
            image_format = img.format
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ImageDecodeError("Decoded bytes are not a supported image format") from exc

    mime_type = MIME_BY_FORMAT.get(image_format or "")
    if mime_type is None:
        raise ImageDecodeError(f"Unsupported image format: {image_format}")
    return EncodedImage.from_bytes(binary, mime_type=mime_type)


def parse_data_url(data_url: str) -> EncodedImage:
    """Validate a data URL sent by a client and normalize its format tag."""
    return encode_image_bytes(EncodedImage.from_data_url(data_url).decode())


def validate_image_file(image_file: UploadFile) -> None:
    """Reject uploads whose declared content type is not an image."""
    if image_file.content_type:
        content_type = image_file.content_type.lower().split(";", 1)[0].strip()
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise HTTPException(status_code=415, detail=f"Unsupported image content type: {image_file.content_type}")


async def read_image_upload(image_file: UploadFile) -> EncodedImage:
    """Read and validate an uploaded image."""
    validate_image_file(image_file)
    raw = await image_file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Uploaded image file is empty.")
    try:
        return encode_image_bytes(raw)
    except ImageDecodeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def load_image_file(path: str) -> EncodedImage:
    """Load an image from disk as an `EncodedImage`."""
    with open(path, "rb") as handle:
        return encode_image_bytes(handle.read())
