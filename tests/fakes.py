"""Scripted stand-ins for the image generation service."""

from __future__ import annotations

import asyncio
import io
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from PIL import Image

from models.design_models import EncodedImage
from models.generation_models import ComposeInput, ComposeResponse, ResponseKind


def png_image(color: Tuple[int, int, int] = (200, 30, 30), size: Tuple[int, int] = (32, 32)) -> EncodedImage:
	out_io = io.BytesIO()
	Image.new("RGB", size, color).save(out_io, format="PNG")
	return EncodedImage.from_bytes(out_io.getvalue(), mime_type="image/png")


class FakeGenerationService:
	"""Records calls and answers from per-prompt or queued scripts.

	`gates` maps a synthesize prompt to an event that must be set before the
	call returns, so tests can control completion order.
	"""

	def __init__(self) -> None:
		self.synth_calls: List[Tuple[str, str]] = []
		self.compose_calls: List[Tuple[List[ComposeInput], Set[ResponseKind]]] = []
		self.synth_results: Dict[str, Any] = {}
		self.compose_results: List[Any] = []
		self.gates: Dict[str, asyncio.Event] = {}
		self.compose_gate: Optional[asyncio.Event] = None
		self.default_image = png_image((10, 120, 200))

	@property
	def call_count(self) -> int:
		return len(self.synth_calls) + len(self.compose_calls)

	async def synthesize(self, prompt: str, aspect_ratio: str) -> EncodedImage:
		self.synth_calls.append((prompt, aspect_ratio))
		gate = self.gates.get(prompt)
		if gate is not None:
			await gate.wait()
		result = self.synth_results.get(prompt, self.default_image)
		if isinstance(result, Exception):
			raise result
		return result

	async def compose(self, inputs: Sequence[ComposeInput], response_kinds) -> ComposeResponse:
		self.compose_calls.append((list(inputs), set(response_kinds)))
		if self.compose_gate is not None:
			await self.compose_gate.wait()
		result = self.compose_results.pop(0) if self.compose_results else ComposeResponse(image=self.default_image)
		if isinstance(result, Exception):
			raise result
		return result
