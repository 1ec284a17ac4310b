"""Session state machine driving generation requests and undo/redo."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from models.design_errors import DesignError, ServiceError, SoftFailure, ValidationError
from models.design_models import (
	DesignMode,
	DesignSession,
	EncodedImage,
	GenerationResult,
	HistorySnapshot,
	Item,
	ProgressState,
	new_item_id,
)
from models.generation_models import CompositeRequest
from services.design.defaults import default_scene_image
from services.design.fallback import FallbackCompositor, GenerationService
from services.design.history_store import HistoryStore
from services.design.progress_estimator import ProgressEstimator

LOGGER = logging.getLogger(__name__)

ITEM_ASPECT_RATIO = "1:1"
SCENE_ASPECT_RATIO = "16:9"
LOCKED_MESSAGE = "Inputs are locked. Refine the design with a prompt or start over."
NO_IMAGE_MESSAGE = "Failed to generate image. The model may not have returned an image."
UNKNOWN_ERROR = "An unknown error occurred."

Listener = Callable[["GenerationOrchestrator"], None]


def _detail(exc: BaseException) -> str:
	if isinstance(exc, DesignError):
		return exc.message
	return str(exc) or UNKNOWN_ERROR


class GenerationOrchestrator:
	"""Own one design session and every mutation applied to it.

	Item and scene generations may overlap freely; each only touches its own
	slot. Composite generations are serialized per session. A reset bumps the
	epoch so that requests still in flight cannot write into the fresh session.
	"""

	def __init__(
		self,
		service: GenerationService,
		*,
		history: Optional[HistoryStore] = None,
		progress: Optional[ProgressEstimator] = None,
		scene_factory: Callable[[], Optional[EncodedImage]] = default_scene_image,
	) -> None:
		self.service = service
		self.history = history or HistoryStore()
		self.progress = progress or ProgressEstimator()
		self.progress.on_update = self._on_progress
		self._compositor = FallbackCompositor(service)
		self._scene_factory = scene_factory
		self._listeners: List[Listener] = []
		self._composite_lock = asyncio.Lock()
		self._epoch = 0
		self._session = self._fresh_session()

	@property
	def session(self) -> DesignSession:
		return self._session

	@property
	def progress_state(self) -> ProgressState:
		return self.progress.state

	def subscribe(self, listener: Listener) -> Callable[[], None]:
		"""Register a change listener; returns a callable that removes it."""
		self._listeners.append(listener)

		def unsubscribe() -> None:
			if listener in self._listeners:
				self._listeners.remove(listener)

		return unsubscribe

	# Input editing

	def add_item(self) -> Optional[Item]:
		try:
			self._require_unlocked()
		except ValidationError as exc:
			self._fail(exc)
			return None
		item = Item(id=new_item_id())
		self._session.items[item.id] = item
		self._notify()
		return item

	def remove_item(self, item_id: str) -> GenerationResult:
		try:
			self._require_unlocked()
			self._position(item_id)
			if len(self._session.items) <= 1:
				raise ValidationError("At least one product slot is required.", field=item_id)
		except ValidationError as exc:
			return self._fail(exc)
		del self._session.items[item_id]
		return self._ok()

	def set_item_image(self, item_id: str, image: EncodedImage) -> GenerationResult:
		try:
			self._require_unlocked()
			self._position(item_id)
		except ValidationError as exc:
			return self._fail(exc)
		self._replace_item(item_id, image=image)
		return self._ok(image)

	def set_scene_image(self, image: EncodedImage) -> GenerationResult:
		try:
			self._require_unlocked()
		except ValidationError as exc:
			return self._fail(exc)
		self._session.scene_image = image
		return self._ok(image)

	def set_prompt(self, prompt: str) -> None:
		self._session.prompt = prompt
		self._session.error = None
		self._notify()

	# Generation

	async def generate_item_image(self, item_id: str, prompt: str) -> GenerationResult:
		"""Synthesize a square product image into one item slot."""
		text = (prompt or "").strip()
		try:
			self._require_unlocked()
			position = self._position(item_id)
			if not text:
				raise ValidationError(f"Please enter a prompt to generate Product {position}.", field=item_id)
			if self._session.items[item_id].busy:
				raise ValidationError(f"Product {position} is already being generated.", field=item_id)
		except ValidationError as exc:
			return self._fail(exc)

		epoch = self._epoch
		self._replace_item(item_id, busy=True)
		self._session.error = None
		self._notify()
		try:
			image = await self.service.synthesize(text, ITEM_ASPECT_RATIO)
		except Exception as exc:
			LOGGER.error("Error generating product %d: %s", position, exc)
			outcome = self._record_error(epoch, ServiceError(f"Error generating product {position}: {_detail(exc)}"))
		else:
			outcome = self._store_item_image(epoch, item_id, image)
		finally:
			if epoch == self._epoch:
				self._replace_item(item_id, busy=False)
				self._notify()
		return outcome

	async def generate_scene_image(self, prompt: str) -> GenerationResult:
		"""Synthesize a wide scene image."""
		text = (prompt or "").strip()
		try:
			self._require_unlocked()
			if not text:
				raise ValidationError("Please enter a prompt to generate the scene image.", field="scene")
			if self._session.scene_busy:
				raise ValidationError("The scene image is already being generated.", field="scene")
		except ValidationError as exc:
			return self._fail(exc)

		epoch = self._epoch
		self._session.scene_busy = True
		self._session.error = None
		self._notify()
		try:
			image = await self.service.synthesize(text, SCENE_ASPECT_RATIO)
		except Exception as exc:
			LOGGER.error("Error generating scene: %s", exc)
			outcome = self._record_error(epoch, ServiceError(f"Error generating scene: {_detail(exc)}"))
		else:
			outcome = self._store_scene_image(epoch, image)
		finally:
			if epoch == self._epoch:
				self._session.scene_busy = False
				self._notify()
		return outcome

	async def generate_composite(self, prompt: Optional[str] = None) -> GenerationResult:
		"""Create the first composite or refine the current one.

		The prompt is read when the call is made (from the session unless given);
		image inputs are read once the request is dispatched. Calls on the same
		session run one at a time; calls still queued when the session is reset
		are dropped.
		"""
		text = (self._session.prompt if prompt is None else prompt).strip()
		epoch = self._epoch
		async with self._composite_lock:
			if epoch != self._epoch:
				LOGGER.info("Dropping composite request queued before a reset")
				return GenerationResult(ok=False)
			try:
				request = self._composite_request(text)
			except ValidationError as exc:
				return self._fail(exc)

			LOGGER.info(
				"Starting generation: mode=%s, scene=%s, items=%d, base=%s",
				self._session.mode.value,
				request.scene_image is not None,
				len(request.item_images),
				request.base_image is not None,
			)
			self._session.composite_busy = True
			self._session.error = None
			self._notify()
			try:
				async with self.progress.track():
					response = await self._compositor.run(request)
			except Exception as exc:
				LOGGER.error("Generation error: %s", exc)
				outcome = self._record_error(epoch, ServiceError(f"Error: {_detail(exc)}"))
			else:
				if response.image is not None:
					outcome = self._commit_composite(epoch, response.image)
				else:
					LOGGER.error("No image in result: %s", response.text)
					outcome = self._record_error(epoch, SoftFailure(response.text or NO_IMAGE_MESSAGE))
			finally:
				if epoch == self._epoch:
					self._session.composite_busy = False
					self._notify()
			return outcome

	# History

	def undo(self) -> bool:
		snapshot = self.history.undo()
		if snapshot is None:
			return False
		self._restore(snapshot)
		return True

	def redo(self) -> bool:
		snapshot = self.history.redo()
		if snapshot is None:
			return False
		self._restore(snapshot)
		return True

	def clear_history(self) -> None:
		self.history.clear()
		self._notify()

	def reset_session(self) -> None:
		"""Start over: empty history, default inputs, no composite, INITIAL mode."""
		self.history.clear()
		self._epoch += 1
		self._composite_lock = asyncio.Lock()
		self.progress.cancel()
		self._session = self._fresh_session()
		LOGGER.info("Session reset (epoch %d)", self._epoch)
		self._notify()

	# Internals

	def _fresh_session(self) -> DesignSession:
		item = Item(id=new_item_id())
		return DesignSession(scene_image=self._scene_factory(), items={item.id: item})

	def _require_unlocked(self) -> None:
		if self._session.mode is DesignMode.REFINEMENT:
			raise ValidationError(LOCKED_MESSAGE, field="inputs")

	def _position(self, item_id: str) -> int:
		try:
			return self._session.item_position(item_id)
		except KeyError:
			raise ValidationError(f"Product {item_id} does not exist.", field=item_id) from None

	def _replace_item(self, item_id: str, **changes) -> bool:
		item = self._session.items.get(item_id)
		if item is None:
			return False
		self._session.items[item_id] = replace(item, **changes)
		return True

	def _composite_request(self, prompt: str) -> CompositeRequest:
		session = self._session
		if session.mode is DesignMode.REFINEMENT:
			if session.composite_image is None:
				raise ValidationError(
					"An initial image must be generated before you can refine it.", field="composite"
				)
		else:
			item_images = session.present_item_images()
			if session.scene_image is None and not item_images:
				raise ValidationError("Please provide a scene image and at least one product image.", field="inputs")
			if session.scene_image is None:
				raise ValidationError("Please provide a scene image.", field="scene")
			if not item_images:
				raise ValidationError("Please provide at least one product image.", field="items")
		if not prompt:
			raise ValidationError("Please enter a prompt to generate the design.", field="prompt")

		if session.mode is DesignMode.REFINEMENT:
			return CompositeRequest(prompt=prompt, base_image=session.composite_image)
		return CompositeRequest(prompt=prompt, scene_image=session.scene_image, item_images=item_images)

	def _commit_composite(self, epoch: int, image: EncodedImage) -> GenerationResult:
		if epoch != self._epoch:
			LOGGER.info("Discarding composite that settled after a reset")
			return GenerationResult(ok=False)
		next_session = replace(
			self._session,
			items=dict(self._session.items),
			composite_image=image,
			mode=DesignMode.REFINEMENT,
			prompt="",
			error=None,
		)
		self.history.commit(next_session)
		self._session = next_session
		LOGGER.info("Composite committed; history length %d", self.history.length)
		return GenerationResult(ok=True, image=image)

	def _store_item_image(self, epoch: int, item_id: str, image: EncodedImage) -> GenerationResult:
		if epoch != self._epoch or self._session.mode is DesignMode.REFINEMENT:
			LOGGER.info("Discarding product image for %s; inputs changed while generating", item_id)
			return GenerationResult(ok=False)
		if not self._replace_item(item_id, image=image):
			LOGGER.info("Discarding product image for removed item %s", item_id)
			return GenerationResult(ok=False)
		return GenerationResult(ok=True, image=image)

	def _store_scene_image(self, epoch: int, image: EncodedImage) -> GenerationResult:
		if epoch != self._epoch or self._session.mode is DesignMode.REFINEMENT:
			LOGGER.info("Discarding scene image; inputs changed while generating")
			return GenerationResult(ok=False)
		self._session.scene_image = image
		return GenerationResult(ok=True, image=image)

	def _restore(self, snapshot: HistorySnapshot) -> None:
		live = self._session.items
		items: Dict[str, Item] = {}
		for item in snapshot.items:
			current = live.get(item.id)
			items[item.id] = replace(item, busy=current.busy) if current is not None else item
		session = self._session
		session.scene_image = snapshot.scene_image
		session.items = items
		session.prompt = snapshot.prompt
		session.composite_image = snapshot.composite_image
		session.mode = snapshot.mode
		session.error = None
		LOGGER.info("Restored %s (cursor %d)", snapshot.id, self.history.cursor)
		self._notify()

	def _record_error(self, epoch: int, error: DesignError) -> GenerationResult:
		if epoch == self._epoch:
			self._session.error = error.message
		return GenerationResult(ok=False, error=error)

	def _fail(self, error: DesignError) -> GenerationResult:
		LOGGER.info("Rejected request: %s", error.message)
		self._session.error = error.message
		self._notify()
		return GenerationResult(ok=False, error=error)

	def _ok(self, image: Optional[EncodedImage] = None) -> GenerationResult:
		self._notify()
		return GenerationResult(ok=True, image=image)

	def _on_progress(self, _state: ProgressState) -> None:
		self._notify()

	def _notify(self) -> None:
		for listener in list(self._listeners):
			try:
				listener(self)
			except Exception:
				LOGGER.exception("Session listener failed")
