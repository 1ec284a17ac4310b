"""Simple in-memory store for design sessions."""

from __future__ import annotations

from typing import Callable, Dict, Tuple
from uuid import uuid4

from services.design.fallback import GenerationService
from services.design.orchestrator import GenerationOrchestrator

OrchestratorFactory = Callable[[GenerationService], GenerationOrchestrator]


class DesignSessionStore:
	"""Hold one orchestrator per design session, keyed by id."""

	def __init__(self, service: GenerationService, factory: OrchestratorFactory = GenerationOrchestrator) -> None:
		self.service = service
		self.factory = factory
		self._sessions: Dict[str, GenerationOrchestrator] = {}

	def create(self) -> Tuple[str, GenerationOrchestrator]:
		"""Create a new session with default inputs."""
		session_id = uuid4().hex
		orchestrator = self.factory(self.service)
		self._sessions[session_id] = orchestrator
		return session_id, orchestrator

	def get(self, session_id: str) -> GenerationOrchestrator:
		"""Return a session or raise KeyError if missing."""
		orchestrator = self._sessions.get(session_id)
		if orchestrator is None:
			raise KeyError(f"Session {session_id} not found")
		return orchestrator

	def discard(self, session_id: str) -> None:
		"""Forget a session; raises KeyError if missing."""
		orchestrator = self.get(session_id)
		orchestrator.reset_session()
		del self._sessions[session_id]

	def __len__(self) -> int:
		return len(self._sessions)
