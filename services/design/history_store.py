"""Bounded undo/redo history of committed design states."""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from typing import List, Optional, Tuple

from models.design_models import DesignSession, HistorySnapshot

LOGGER = logging.getLogger(__name__)
DEFAULT_CAPACITY = int(os.getenv("DESIGN_HISTORY_CAPACITY", "3"))


class HistoryStore:
	"""Keep the most recent committed snapshots and a cursor into them.

	Snapshots carry full image payloads, so the store is deliberately small.
	Committing after an undo discards every entry past the cursor.
	"""

	def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
		if capacity < 1:
			raise ValueError("History capacity must be at least 1.")
		self.capacity = capacity
		self._entries: List[HistorySnapshot] = []
		self._cursor = -1

	@property
	def cursor(self) -> int:
		return self._cursor

	@property
	def entries(self) -> Tuple[HistorySnapshot, ...]:
		return tuple(self._entries)

	@property
	def length(self) -> int:
		return len(self._entries)

	def __len__(self) -> int:
		return len(self._entries)

	@property
	def can_undo(self) -> bool:
		return self._cursor > 0

	@property
	def can_redo(self) -> bool:
		return self._cursor < len(self._entries) - 1

	@property
	def has_history(self) -> bool:
		return bool(self._entries)

	@property
	def current(self) -> Optional[HistorySnapshot]:
		if self._cursor < 0:
			return None
		return self._entries[self._cursor]

	def commit(self, session: DesignSession) -> Optional[HistorySnapshot]:
		"""Snapshot a session that holds a composite image.

		Returns the new snapshot, or None when there is nothing to commit.
		"""
		if session.composite_image is None:
			return None

		snapshot = HistorySnapshot(
			composite_image=session.composite_image,
			prompt=session.prompt,
			scene_image=session.scene_image,
			items=tuple(replace(item, busy=False) for item in session.items.values()),
			mode=session.mode,
		)

		del self._entries[self._cursor + 1:]
		self._entries.append(snapshot)
		if len(self._entries) > self.capacity:
			evicted = self._entries.pop(0)
			LOGGER.debug("History full; evicted %s", evicted.id)
		self._cursor = len(self._entries) - 1
		return snapshot

	def undo(self) -> Optional[HistorySnapshot]:
		"""Step back one entry and return it, or None when already at the oldest."""
		if not self.can_undo:
			return None
		self._cursor -= 1
		return self._entries[self._cursor]

	def redo(self) -> Optional[HistorySnapshot]:
		"""Step forward one entry and return it, or None when already at the newest."""
		if not self.can_redo:
			return None
		self._cursor += 1
		return self._entries[self._cursor]

	def clear(self) -> None:
		self._entries.clear()
		self._cursor = -1
