"""Tool and size definitions for image generation requests."""

from typing import Any, Dict

IMAGE_GENERATION_TOOL: Dict[str, Any] = {
    "type": "image_generation",
    "output_format": "png",
    "quality": "high",
}

FORCE_IMAGE_TOOL: Dict[str, Any] = {"type": "image_generation"}

# Images API only accepts square, landscape and portrait sizes.
SIZE_BY_ASPECT_RATIO: Dict[str, str] = {
    "1:1": "1024x1024",
    "16:9": "1536x1024",
    "4:3": "1536x1024",
    "9:16": "1024x1536",
    "3:4": "1024x1536",
}


def size_for_aspect_ratio(aspect_ratio: str) -> str:
    """Return the Images API size closest to the requested aspect ratio."""
    try:
        return SIZE_BY_ASPECT_RATIO[aspect_ratio]
    except KeyError as exc:
        raise ValueError(f"Unsupported aspect ratio: {aspect_ratio}") from exc
