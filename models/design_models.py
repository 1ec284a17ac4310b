"""Design session domain models."""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

from models.design_errors import DesignError, ImageDecodeError


class DesignMode(str, Enum):
	"""Whether the session still accepts inputs or only refines the composite."""

	INITIAL = "initial"
	REFINEMENT = "refinement"


@dataclass(frozen=True)
class EncodedImage:
	"""An image carried as a format tag plus a base64 payload."""

	mime_type: str
	data: str

	@classmethod
	def from_bytes(cls, raw: bytes, mime_type: str = "image/png") -> "EncodedImage":
		return cls(mime_type=mime_type, data=base64.b64encode(raw).decode("utf-8"))

	@classmethod
	def from_data_url(cls, data_url: str) -> "EncodedImage":
		"""Parse a `data:<mime>;base64,<payload>` string."""
		header, sep, payload = (data_url or "").partition(";base64,")
		if not sep or not header.startswith("data:") or not payload:
			raise ImageDecodeError("Expected a base64 data URL.")
		return cls(mime_type=header[len("data:"):] or "image/png", data=payload.strip())

	def to_data_url(self) -> str:
		return f"data:{self.mime_type};base64,{self.data}"

	def decode(self) -> bytes:
		try:
			return base64.b64decode(self.data, validate=True)
		except Exception as exc:
			raise ImageDecodeError("Image payload is not valid base64.") from exc


def new_item_id() -> str:
	return f"item-{uuid4().hex[:12]}"


@dataclass(frozen=True)
class Item:
	"""One product slot. Replaced wholesale on every change."""

	id: str
	image: Optional[EncodedImage] = None
	busy: bool = False


@dataclass
class DesignSession:
	"""Mutable working state of one design in progress."""

	scene_image: Optional[EncodedImage]
	items: Dict[str, Item] = field(default_factory=dict)
	prompt: str = ""
	composite_image: Optional[EncodedImage] = None
	mode: DesignMode = DesignMode.INITIAL
	error: Optional[str] = None
	scene_busy: bool = False
	composite_busy: bool = False

	def item_position(self, item_id: str) -> int:
		"""Return the 1-based position of an item, as shown to the user."""
		for index, key in enumerate(self.items):
			if key == item_id:
				return index + 1
		raise KeyError(item_id)

	def present_item_images(self) -> Tuple[EncodedImage, ...]:
		return tuple(item.image for item in self.items.values() if item.image is not None)


@dataclass(frozen=True)
class HistorySnapshot:
	"""Immutable copy of the session fields restored by undo and redo."""

	composite_image: EncodedImage
	prompt: str
	scene_image: Optional[EncodedImage]
	items: Tuple[Item, ...]
	mode: DesignMode
	id: str = field(default_factory=lambda: f"state-{uuid4().hex[:12]}")
	created_at: float = field(default_factory=lambda: time.time())


@dataclass
class ProgressState:
	"""Cosmetic progress telemetry for an in-flight composite request."""

	progress: float = 0.0
	status: str = "Initializing..."
	visible: bool = False


@dataclass
class GenerationResult:
	"""Outcome of one orchestration call."""

	ok: bool
	image: Optional[EncodedImage] = None
	error: Optional[DesignError] = None

	@property
	def message(self) -> Optional[str]:
		return self.error.message if self.error else None

	def as_dict(self) -> Dict[str, Any]:
		return {
			"ok": self.ok,
			"error": self.message,
			"error_kind": self.error.kind if self.error else None,
		}
