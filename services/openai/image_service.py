"""Image synthesis and multimodal composition via OpenAI."""

import logging
import os
from typing import AbstractSet, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from models.design_errors import ServiceError
from models.design_models import EncodedImage
from models.generation_models import ComposeInput, ComposeResponse, IMAGE_AND_TEXT, ResponseKind
from services.openai.image_schema import FORCE_IMAGE_TOOL, IMAGE_GENERATION_TOOL, size_for_aspect_ratio
from services.openai.media_inputs import build_inputs
from services.openai.response_parser import extract_first_image, parse_compose_response

LOGGER = logging.getLogger(__name__)
IMAGE_MODEL = os.getenv("OPENAI_IMAGE_MODEL", "gpt-image-1")
COMPOSE_MODEL = os.getenv("OPENAI_COMPOSE_MODEL", "gpt-4.1")


class ImageGenerationService:
    """Thin wrapper over the OpenAI client exposing `synthesize` and `compose`.

    Every failure of the remote call is raised as `ServiceError`. No retries are
    attempted here; callers decide whether to try again.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        image_model: str = IMAGE_MODEL,
        compose_model: str = COMPOSE_MODEL,
    ) -> None:
        if client is None:
            raise ValueError("AsyncOpenAI client is required.")
        self.client = client
        self.image_model = image_model
        self.compose_model = compose_model

    async def synthesize(self, prompt: str, aspect_ratio: str) -> EncodedImage:
        """Generate a single image from text only.

        Args:
            prompt: Description of the image to create.
            aspect_ratio: One of 1:1, 16:9, 9:16, 4:3, 3:4.

        Returns:
            The generated PNG as an `EncodedImage`.

        Raises:
            ServiceError: If the call fails or no image data comes back.
        """
        size = size_for_aspect_ratio(aspect_ratio)
        LOGGER.info("Synthesizing %s image with %s", size, self.image_model)
        try:
            response = await self.client.images.generate(
                model=self.image_model,
                prompt=prompt,
                size=size,
                n=1,
            )
        except OpenAIError as exc:
            LOGGER.error("Image synthesis failed: %s", exc)
            raise ServiceError(f"OpenAI API Error: {exc}") from exc

        image = extract_first_image(response)
        if image is None:
            LOGGER.error("No image data found in synthesis response")
            raise ServiceError("Image generation failed: The API did not return image data.")
        LOGGER.info("Image data found, length: %d", len(image.data))
        return image

    async def compose(
        self,
        inputs: Sequence[ComposeInput],
        response_kinds: AbstractSet[ResponseKind] = IMAGE_AND_TEXT,
    ) -> ComposeResponse:
        """Send ordered image/text inputs and return whatever image and text came back.

        Raises:
            ServiceError: If the remote call fails.
        """
        tool_choice: Optional[dict] = None
        if ResponseKind.TEXT not in response_kinds:
            tool_choice = FORCE_IMAGE_TOOL

        kwargs = {
            "model": self.compose_model,
            "input": build_inputs(inputs),
            "tools": [IMAGE_GENERATION_TOOL],
        }
        if tool_choice is not None:
            kwargs["tool_choice"] = tool_choice

        LOGGER.info(
            "Composing with %d parts (%s)",
            len(inputs),
            ", ".join(sorted(kind.value for kind in response_kinds)),
        )
        try:
            response = await self.client.responses.create(**kwargs)
        except OpenAIError as exc:
            LOGGER.error("Compose request failed: %s", exc)
            raise ServiceError(f"OpenAI API Error: {exc}") from exc

        result = parse_compose_response(response)
        LOGGER.info(
            "Compose response - image: %s, text: %s, block reason: %s",
            result.image is not None,
            result.text is not None,
            result.block_reason,
        )
        return result
