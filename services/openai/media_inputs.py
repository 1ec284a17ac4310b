"""Utilities to build multimodal input payloads for the Responses API."""

from typing import Any, Dict, List, Sequence

from models.generation_models import ComposeInput, ImageRef, TextRef


def build_content(inputs: Sequence[ComposeInput]) -> List[Dict[str, Any]]:
    """Convert ordered image/text references into Responses API content parts."""
    content: List[Dict[str, Any]] = []
    for part in inputs:
        if isinstance(part, ImageRef):
            content.append({"type": "input_image", "image_url": part.image.to_data_url()})
        elif isinstance(part, TextRef):
            content.append({"type": "input_text", "text": part.text})
        else:
            raise TypeError(f"Unsupported compose input: {part!r}")
    return content


def build_inputs(inputs: Sequence[ComposeInput]) -> List[Dict[str, Any]]:
    """Wrap all parts in a single user message, preserving their order."""
    if not inputs:
        raise ValueError("At least one compose input is required.")
    return [{"type": "message", "role": "user", "content": build_content(inputs)}]
