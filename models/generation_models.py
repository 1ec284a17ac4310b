"""Request and response shapes exchanged with the image generation service."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Sequence, Union

from models.design_models import EncodedImage


class ResponseKind(str, Enum):
	IMAGE = "image"
	TEXT = "text"


IMAGE_AND_TEXT: FrozenSet[ResponseKind] = frozenset({ResponseKind.IMAGE, ResponseKind.TEXT})
IMAGE_ONLY: FrozenSet[ResponseKind] = frozenset({ResponseKind.IMAGE})


@dataclass(frozen=True)
class ImageRef:
	image: EncodedImage


@dataclass(frozen=True)
class TextRef:
	text: str


ComposeInput = Union[ImageRef, TextRef]


@dataclass(frozen=True)
class ComposeResponse:
	"""Parsed result of a multimodal compose call; any field may be absent."""

	image: Optional[EncodedImage] = None
	text: Optional[str] = None
	block_reason: Optional[str] = None


@dataclass(frozen=True)
class CompositeRequest:
	"""Point-in-time inputs for one composite generation."""

	prompt: str
	base_image: Optional[EncodedImage] = None
	scene_image: Optional[EncodedImage] = None
	item_images: Sequence[EncodedImage] = ()

	@property
	def is_refinement(self) -> bool:
		return self.base_image is not None
