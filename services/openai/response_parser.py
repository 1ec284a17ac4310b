"""Helpers to parse image generation outputs."""

from typing import Any, Optional

from models.design_models import EncodedImage
from models.generation_models import ComposeResponse

BLOCKING_INCOMPLETE_REASONS = {"content_filter"}


def _get(obj: Any, key: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def parse_compose_response(response: Any) -> ComposeResponse:
    """Collect the last image, the last text and any block reason from a Responses payload."""
    image: Optional[EncodedImage] = None
    text: Optional[str] = None
    for item in _get(response, "output", None) or []:
        item_type = _get(item, "type")
        if item_type == "image_generation_call":
            result = _get(item, "result")
            if result:
                image = EncodedImage(mime_type="image/png", data=result)
        elif item_type == "message":
            for content in _get(item, "content", None) or []:
                content_type = _get(content, "type")
                if content_type == "output_text" and _get(content, "text"):
                    text = _get(content, "text")
                elif content_type == "refusal" and _get(content, "refusal"):
                    text = _get(content, "refusal")
    return ComposeResponse(image=image, text=text, block_reason=extract_block_reason(response))


def extract_block_reason(response: Any) -> Optional[str]:
    """Return the content-filter reason if the response was cut short by moderation."""
    details = _get(response, "incomplete_details")
    reason = _get(details, "reason") if details else None
    if reason in BLOCKING_INCOMPLETE_REASONS:
        return reason
    return None


def extract_first_image(response: Any) -> Optional[EncodedImage]:
    """Return the first base64 image from an Images API response."""
    for datum in _get(response, "data", None) or []:
        b64 = _get(datum, "b64_json")
        if b64:
            return EncodedImage(mime_type="image/png", data=b64)
    return None
