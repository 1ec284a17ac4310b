"""FastAPI routes for design sessions."""

from typing import Optional

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import BaseModel

from controllers import design_controller as designs

router = APIRouter(prefix="/designs")


class GeneratePayload(BaseModel):
	prompt: str = ""


class PromptPayload(BaseModel):
	prompt: str


class CompositePayload(BaseModel):
	prompt: Optional[str] = None


async def _guard(call):
	try:
		return await call
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("")
async def start_design_route(request: Request):
	return await _guard(designs.start_design(request))


@router.get("/{session_id}")
async def get_design_route(request: Request, session_id: str):
	return await _guard(designs.get_design(request, session_id))


@router.delete("/{session_id}")
async def delete_design_route(request: Request, session_id: str):
	return await _guard(designs.delete_design(request, session_id))


@router.post("/{session_id}/scene")
async def upload_scene_route(request: Request, session_id: str, file: UploadFile = File(...)):
	return await _guard(designs.upload_scene(request, session_id, file))


@router.post("/{session_id}/scene/generate")
async def generate_scene_route(request: Request, session_id: str, payload: GeneratePayload):
	return await _guard(designs.generate_scene(request, session_id, payload.prompt))


@router.post("/{session_id}/items")
async def add_item_route(request: Request, session_id: str):
	return await _guard(designs.add_item(request, session_id))


@router.delete("/{session_id}/items/{item_id}")
async def remove_item_route(request: Request, session_id: str, item_id: str):
	return await _guard(designs.remove_item(request, session_id, item_id))


@router.post("/{session_id}/items/{item_id}/image")
async def upload_item_image_route(request: Request, session_id: str, item_id: str, file: UploadFile = File(...)):
	return await _guard(designs.upload_item_image(request, session_id, item_id, file))


@router.post("/{session_id}/items/{item_id}/generate")
async def generate_item_route(request: Request, session_id: str, item_id: str, payload: GeneratePayload):
	return await _guard(designs.generate_item(request, session_id, item_id, payload.prompt))


@router.put("/{session_id}/prompt")
async def update_prompt_route(request: Request, session_id: str, payload: PromptPayload):
	return await _guard(designs.update_prompt(request, session_id, payload.prompt))


@router.post("/{session_id}/composite")
async def generate_composite_route(request: Request, session_id: str, payload: CompositePayload):
	return await _guard(designs.generate_composite(request, session_id, payload.prompt))


@router.get("/{session_id}/composite.png")
async def get_composite_route(request: Request, session_id: str):
	"""Return the current composite image bytes."""
	return await _guard(designs.get_composite(request, session_id))


@router.post("/{session_id}/undo")
async def undo_route(request: Request, session_id: str):
	return await _guard(designs.undo(request, session_id))


@router.post("/{session_id}/redo")
async def redo_route(request: Request, session_id: str):
	return await _guard(designs.redo(request, session_id))


@router.get("/{session_id}/history")
async def get_history_route(request: Request, session_id: str):
	return await _guard(designs.get_history(request, session_id))


@router.post("/{session_id}/history/clear")
async def clear_history_route(request: Request, session_id: str):
	return await _guard(designs.clear_history(request, session_id))


@router.post("/{session_id}/reset")
async def reset_design_route(request: Request, session_id: str):
	return await _guard(designs.reset_design(request, session_id))
