"""Dispatch design websocket events to the session orchestrator."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from fastapi import WebSocket

from models.design_errors import ImageDecodeError
from models.design_models import GenerationResult
from services.design.orchestrator import GenerationOrchestrator
from services.design.views import session_view
from utils.media_validation import parse_data_url

LOGGER = logging.getLogger(__name__)


class DesignSocketHandler:
	"""Route websocket messages for a single design session and push its state."""

	def __init__(self, session_id: str, orchestrator: GenerationOrchestrator) -> None:
		self.session_id = session_id
		self.orchestrator = orchestrator

	async def handle(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
		"""Process a single inbound websocket payload."""
		request_id = payload.get("request_id")
		message_type = payload.get("type")
		try:
			result = await self._dispatch(message_type, payload)
			reply: Dict[str, Any] = {"type": f"{message_type}.ack", "request_id": request_id}
			if isinstance(result, GenerationResult):
				reply["result"] = result.as_dict()
			elif result is not None:
				reply["result"] = result
			await self._send(websocket, reply)
		except Exception as exc:
			try:
				await self._send_error(websocket, request_id, str(exc))
			except Exception:
				LOGGER.info("Could not deliver error for %s: %s", message_type, exc)

	async def _dispatch(self, message_type: Optional[str], payload: Dict[str, Any]) -> Any:
		orchestrator = self.orchestrator
		if message_type == "prompt.update":
			orchestrator.set_prompt(payload.get("prompt") or "")
			return None
		if message_type == "scene.upload":
			return orchestrator.set_scene_image(self._image(payload))
		if message_type == "scene.generate":
			return await orchestrator.generate_scene_image(payload.get("prompt") or "")
		if message_type == "item.add":
			item = orchestrator.add_item()
			return {"item_id": item.id if item is not None else None}
		if message_type == "item.remove":
			return orchestrator.remove_item(self._item_id(payload))
		if message_type == "item.upload":
			return orchestrator.set_item_image(self._item_id(payload), self._image(payload))
		if message_type == "item.generate":
			return await orchestrator.generate_item_image(self._item_id(payload), payload.get("prompt") or "")
		if message_type == "composite.generate":
			return await orchestrator.generate_composite(payload.get("prompt"))
		if message_type == "history.undo":
			return {"applied": orchestrator.undo()}
		if message_type == "history.redo":
			return {"applied": orchestrator.redo()}
		if message_type == "history.clear":
			orchestrator.clear_history()
			return None
		if message_type == "session.reset":
			orchestrator.reset_session()
			return None
		raise ValueError("Unsupported message type.")

	def _item_id(self, payload: Dict[str, Any]) -> str:
		item_id = (payload.get("item_id") or "").strip()
		if not item_id:
			raise ValueError("item_id is required.")
		return item_id

	def _image(self, payload: Dict[str, Any]) -> Any:
		data_url = (payload.get("image") or "").strip()
		if not data_url:
			raise ValueError("Image payload is required.")
		try:
			return parse_data_url(data_url)
		except ImageDecodeError as exc:
			raise ValueError(str(exc)) from exc

	async def push_state(self, websocket: WebSocket, changed: asyncio.Event) -> None:
		"""Send the latest state view whenever the session reports a change."""
		while True:
			await changed.wait()
			changed.clear()
			view = session_view(self.session_id, self.orchestrator)
			await self._send(websocket, {"type": "state", "state": view})

	async def _send_error(self, websocket: WebSocket, request_id: Any, detail: str) -> None:
		await self._send(websocket, {"type": "error", "request_id": request_id, "detail": detail})

	async def _send(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
		await websocket.send_text(json.dumps(payload))
