"""Design session helpers behind the HTTP routes."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, UploadFile
from fastapi.responses import Response

from models.design_models import GenerationResult
from services.design.orchestrator import GenerationOrchestrator
from services.design.session_store import DesignSessionStore
from services.design.views import history_view, session_view
from utils.media_validation import read_image_upload


def _store(request: Request) -> DesignSessionStore:
	return request.app.state.design_store


def _orchestrator(request: Request, session_id: str) -> GenerationOrchestrator:
	try:
		return _store(request).get(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc


def _respond(session_id: str, orchestrator: GenerationOrchestrator, result: Optional[GenerationResult] = None) -> Dict[str, Any]:
	payload = session_view(session_id, orchestrator)
	if result is not None:
		payload["result"] = result.as_dict()
	return payload


async def start_design(request: Request) -> Dict[str, Any]:
	"""Create a new design session and return its state."""
	session_id, orchestrator = _store(request).create()
	return _respond(session_id, orchestrator)


async def get_design(request: Request, session_id: str) -> Dict[str, Any]:
	return _respond(session_id, _orchestrator(request, session_id))


async def upload_scene(request: Request, session_id: str, file: UploadFile) -> Dict[str, Any]:
	orchestrator = _orchestrator(request, session_id)
	image = await read_image_upload(file)
	return _respond(session_id, orchestrator, orchestrator.set_scene_image(image))


async def generate_scene(request: Request, session_id: str, prompt: str) -> Dict[str, Any]:
	orchestrator = _orchestrator(request, session_id)
	result = await orchestrator.generate_scene_image(prompt)
	return _respond(session_id, orchestrator, result)


async def add_item(request: Request, session_id: str) -> Dict[str, Any]:
	orchestrator = _orchestrator(request, session_id)
	item = orchestrator.add_item()
	payload = _respond(session_id, orchestrator)
	payload["item_id"] = item.id if item is not None else None
	return payload


async def remove_item(request: Request, session_id: str, item_id: str) -> Dict[str, Any]:
	orchestrator = _orchestrator(request, session_id)
	return _respond(session_id, orchestrator, orchestrator.remove_item(item_id))


async def upload_item_image(request: Request, session_id: str, item_id: str, file: UploadFile) -> Dict[str, Any]:
	orchestrator = _orchestrator(request, session_id)
	image = await read_image_upload(file)
	return _respond(session_id, orchestrator, orchestrator.set_item_image(item_id, image))


async def generate_item(request: Request, session_id: str, item_id: str, prompt: str) -> Dict[str, Any]:
	orchestrator = _orchestrator(request, session_id)
	result = await orchestrator.generate_item_image(item_id, prompt)
	return _respond(session_id, orchestrator, result)


async def update_prompt(request: Request, session_id: str, prompt: str) -> Dict[str, Any]:
	orchestrator = _orchestrator(request, session_id)
	orchestrator.set_prompt(prompt)
	return _respond(session_id, orchestrator)


async def generate_composite(request: Request, session_id: str, prompt: Optional[str]) -> Dict[str, Any]:
	orchestrator = _orchestrator(request, session_id)
	result = await orchestrator.generate_composite(prompt)
	return _respond(session_id, orchestrator, result)


async def undo(request: Request, session_id: str) -> Dict[str, Any]:
	orchestrator = _orchestrator(request, session_id)
	applied = orchestrator.undo()
	payload = _respond(session_id, orchestrator)
	payload["applied"] = applied
	return payload


async def redo(request: Request, session_id: str) -> Dict[str, Any]:
	orchestrator = _orchestrator(request, session_id)
	applied = orchestrator.redo()
	payload = _respond(session_id, orchestrator)
	payload["applied"] = applied
	return payload


async def clear_history(request: Request, session_id: str) -> Dict[str, Any]:
	orchestrator = _orchestrator(request, session_id)
	orchestrator.clear_history()
	return _respond(session_id, orchestrator)


async def reset_design(request: Request, session_id: str) -> Dict[str, Any]:
	orchestrator = _orchestrator(request, session_id)
	orchestrator.reset_session()
	return _respond(session_id, orchestrator)


async def delete_design(request: Request, session_id: str) -> Dict[str, Any]:
	try:
		_store(request).discard(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc
	return {"session_id": session_id, "deleted": True}


async def get_history(request: Request, session_id: str) -> Dict[str, Any]:
	orchestrator = _orchestrator(request, session_id)
	return {"session_id": session_id, "entries": history_view(orchestrator)}


async def get_composite(request: Request, session_id: str) -> Response:
	"""Return the raw composite image bytes.

	Raises:
		HTTPException(404) if the session or composite is missing.
	"""
	orchestrator = _orchestrator(request, session_id)
	image = orchestrator.session.composite_image
	if image is None:
		raise HTTPException(status_code=404, detail="Composite not available for this session")
	return Response(content=image.decode(), media_type=image.mime_type)
