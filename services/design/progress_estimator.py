"""Simulated progress for composite requests whose duration is unknown."""

from __future__ import annotations

import asyncio
import logging
import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional, Sequence

from models.design_models import ProgressState

LOGGER = logging.getLogger(__name__)

STATUS_MESSAGES: Sequence[str] = (
	"Analyzing your images...",
	"Understanding your prompt...",
	"Generating design concepts...",
	"Rendering your vision...",
	"Adding final touches...",
	"Almost ready...",
)
INITIAL_STATUS = "Initializing..."
OVERFLOW_STATUS = "Finalizing..."
COMPLETE_STATUS = "Complete!"


class ProgressEstimator:
	"""Drive a progress value and a rotating status label while a request runs.

	Two timers run per request: one advances the status label once per
	`status_interval`, the other adds a random increment every `tick_interval`
	without passing `ceiling`. Both are cancelled when the request settles,
	after which progress jumps to 100 and the surface hides after `hide_delay`.
	"""

	def __init__(
		self,
		*,
		tick_interval: float = 0.2,
		status_interval: float = 1.0,
		max_increment: float = 15.0,
		ceiling: float = 90.0,
		hide_delay: float = 0.5,
		statuses: Sequence[str] = STATUS_MESSAGES,
		rng: Optional[random.Random] = None,
		on_update: Optional[Callable[[ProgressState], None]] = None,
	) -> None:
		self.tick_interval = tick_interval
		self.status_interval = status_interval
		self.max_increment = max_increment
		self.ceiling = ceiling
		self.hide_delay = hide_delay
		self.statuses = tuple(statuses)
		self.rng = rng or random.Random()
		self.on_update = on_update
		self.state = ProgressState()
		self._run = 0
		self._tick_task: Optional[asyncio.Task] = None
		self._status_task: Optional[asyncio.Task] = None
		self._hide_task: Optional[asyncio.Task] = None

	@asynccontextmanager
	async def track(self) -> AsyncIterator[ProgressState]:
		"""Run the simulation for the duration of the enclosed request."""
		run = self.start()
		try:
			yield self.state
		finally:
			self.complete(run)

	def start(self) -> int:
		"""Reset to zero, show the surface and start both timers. Returns the run token."""
		self._cancel_timers(include_hide=True)
		self._run += 1
		self.state = ProgressState(progress=0.0, status=INITIAL_STATUS, visible=True)
		self._tick_task = asyncio.create_task(self._advance_progress(self._run))
		self._status_task = asyncio.create_task(self._rotate_status(self._run))
		self._emit()
		return self._run

	def complete(self, run: Optional[int] = None) -> None:
		"""Stop both timers, force 100% and schedule the surface to hide.

		A stale `run` token (from a request superseded by `start` or `cancel`) is ignored.
		"""
		if run is not None and run != self._run:
			return
		self._cancel_timers()
		self.state.progress = 100.0
		self.state.status = COMPLETE_STATUS
		self._emit()
		self._hide_task = asyncio.create_task(self._hide_later(self._run))

	def cancel(self) -> None:
		"""Drop any running simulation and hide immediately."""
		self._cancel_timers(include_hide=True)
		self._run += 1
		self.state = ProgressState()
		self._emit()

	def _cancel_timers(self, include_hide: bool = False) -> None:
		tasks = [self._tick_task, self._status_task]
		if include_hide:
			tasks.append(self._hide_task)
			self._hide_task = None
		for task in tasks:
			if task is not None and not task.done():
				task.cancel()
		self._tick_task = None
		self._status_task = None

	async def _advance_progress(self, run: int) -> None:
		while run == self._run:
			await asyncio.sleep(self.tick_interval)
			if self.state.progress >= self.ceiling:
				continue
			step = self.rng.random() * self.max_increment
			self.state.progress = min(self.ceiling, self.state.progress + step)
			self._emit()

	async def _rotate_status(self, run: int) -> None:
		index = 0
		while run == self._run:
			await asyncio.sleep(self.status_interval)
			self.state.status = self.statuses[index] if index < len(self.statuses) else OVERFLOW_STATUS
			index += 1
			self._emit()

	async def _hide_later(self, run: int) -> None:
		await asyncio.sleep(self.hide_delay)
		if run == self._run:
			self.state.visible = False
			self._emit()

	def _emit(self) -> None:
		if self.on_update is None:
			return
		try:
			self.on_update(self.state)
		except Exception:
			LOGGER.exception("Progress listener failed")
