"""Serializable views of a design session for the presentation layer."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from models.design_models import EncodedImage
from services.design.orchestrator import GenerationOrchestrator
from services.thumbnail_generator import ThumbnailGenerator


def _url(image: Optional[EncodedImage]) -> Optional[str]:
	return image.to_data_url() if image is not None else None


def session_view(session_id: str, orchestrator: GenerationOrchestrator) -> Dict[str, Any]:
	"""Return session fields, busy flags, error, progress and history capabilities."""
	session = orchestrator.session
	history = orchestrator.history
	progress = orchestrator.progress_state
	return {
		"session_id": session_id,
		"mode": session.mode.value,
		"scene_image": _url(session.scene_image),
		"scene_busy": session.scene_busy,
		"items": [
			{"id": item.id, "image": _url(item.image), "busy": item.busy}
			for item in session.items.values()
		],
		"prompt": session.prompt,
		"composite_image": _url(session.composite_image),
		"composite_busy": session.composite_busy,
		"error": session.error,
		"progress": {
			"progress": round(progress.progress, 1),
			"status": progress.status,
			"visible": progress.visible,
		},
		"history": {
			"can_undo": history.can_undo,
			"can_redo": history.can_redo,
			"has_history": history.has_history,
			"length": history.length,
			"cursor": history.cursor,
		},
	}


def history_view(orchestrator: GenerationOrchestrator, thumbnails: Optional[ThumbnailGenerator] = None) -> List[Dict[str, Any]]:
	"""Return history entries with small PNG previews of each composite."""
	thumbnails = thumbnails or ThumbnailGenerator()
	history = orchestrator.history
	entries = []
	for index, snapshot in enumerate(history.entries):
		entries.append(
			{
				"id": snapshot.id,
				"created_at": snapshot.created_at,
				"current": index == history.cursor,
				"thumbnail": thumbnails.create_thumbnail(snapshot.composite_image).to_data_url(),
			}
		)
	return entries
