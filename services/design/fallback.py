"""Two-stage composite generation: multimodal first, text-only fallback."""

from __future__ import annotations

import logging
from typing import AbstractSet, List, Protocol, Sequence

from models.design_errors import ServiceError
from models.design_models import EncodedImage
from models.generation_models import (
	IMAGE_AND_TEXT,
	IMAGE_ONLY,
	ComposeInput,
	ComposeResponse,
	CompositeRequest,
	ImageRef,
	ResponseKind,
	TextRef,
)
from services.design.prompts import enhanced_prompt

LOGGER = logging.getLogger(__name__)
EMPTY_RESPONSE_TEXT = "The model did not return any content. Try adjusting your prompt."


class GenerationService(Protocol):
	async def synthesize(self, prompt: str, aspect_ratio: str) -> EncodedImage:
		...

	async def compose(
		self, inputs: Sequence[ComposeInput], response_kinds: AbstractSet[ResponseKind]
	) -> ComposeResponse:
		...


def multimodal_inputs(request: CompositeRequest) -> List[ComposeInput]:
	"""Order the inputs: base image when refining, else scene then items; prompt last."""
	parts: List[ComposeInput] = []
	if request.base_image is not None:
		parts.append(ImageRef(request.base_image))
	else:
		if request.scene_image is not None:
			parts.append(ImageRef(request.scene_image))
		parts.extend(ImageRef(image) for image in request.item_images)
	parts.append(TextRef(request.prompt))
	return parts


class FallbackCompositor:
	"""Run the multimodal attempt and fall back to a text-only redescription."""

	def __init__(self, service: GenerationService) -> None:
		self.service = service

	async def run(self, request: CompositeRequest) -> ComposeResponse:
		"""Return an image, explanatory text, or both.

		Stage-one failures are logged and never raised.

		Raises:
			ServiceError: If the fallback call fails or the request was blocked.
		"""
		inputs = multimodal_inputs(request)
		LOGGER.info(
			"Multimodal attempt with %d parts (refinement=%s)", len(inputs), request.is_refinement
		)
		try:
			first = await self.service.compose(inputs, IMAGE_AND_TEXT)
		except Exception as exc:
			LOGGER.info("Multimodal generation failed, trying text-only approach: %s", exc)
		else:
			if first.image is not None:
				LOGGER.info("Multimodal generation successful")
				return first
			LOGGER.info("Multimodal generation did not return image, trying text-only approach")

		second = await self.service.compose([TextRef(enhanced_prompt(request.prompt))], IMAGE_ONLY)
		if second.image is None and not second.text:
			if second.block_reason:
				LOGGER.error("Request was blocked: %s", second.block_reason)
				raise ServiceError(f"Request was blocked: {second.block_reason}")
			LOGGER.info("No image or text content found in fallback response")
			return ComposeResponse(text=EMPTY_RESPONSE_TEXT)
		return second
