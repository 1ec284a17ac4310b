"""WebSocket endpoint streaming design session state and accepting intents."""

from __future__ import annotations

import asyncio
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket
from starlette.websockets import WebSocketDisconnect

from services.design.session_store import DesignSessionStore
from services.design.ws_session import DesignSocketHandler

LOGGER = logging.getLogger(__name__)
router = APIRouter()


def _require_design_store(websocket: WebSocket) -> DesignSessionStore:
	store = websocket.app.state.design_store
	if store is None:
		raise HTTPException(status_code=500, detail="Design store unavailable")
	return store


@router.websocket("/ws/designs/{session_id}")
async def design_socket(websocket: WebSocket, session_id: str, store: DesignSessionStore = Depends(_require_design_store)):
	"""Push state on every change; run each inbound intent as its own task."""
	await websocket.accept()
	try:
		orchestrator = store.get(session_id)
	except KeyError:
		await websocket.send_text(json.dumps({"type": "error", "detail": "Session not found"}))
		await websocket.close()
		return

	handler = DesignSocketHandler(session_id, orchestrator)
	changed = asyncio.Event()
	changed.set()
	unsubscribe = orchestrator.subscribe(lambda _orchestrator: changed.set())
	pusher = asyncio.create_task(handler.push_state(websocket, changed))
	pending = set()
	try:
		while True:
			try:
				raw = await websocket.receive_text()
			except WebSocketDisconnect:
				break
			try:
				payload = json.loads(raw)
			except Exception:
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be JSON"}))
				continue
			task = asyncio.create_task(handler.handle(websocket, payload))
			pending.add(task)
			task.add_done_callback(pending.discard)
	finally:
		unsubscribe()
		pusher.cancel()
		LOGGER.info("Design socket for %s closed with %d requests still running", session_id, len(pending))
	try:
		await websocket.close()
	except Exception:
		pass
