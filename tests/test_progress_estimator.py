import asyncio
import random

import pytest

from services.design.progress_estimator import (
	COMPLETE_STATUS,
	INITIAL_STATUS,
	OVERFLOW_STATUS,
	STATUS_MESSAGES,
	ProgressEstimator,
)


def _estimator(**overrides):
	options = dict(tick_interval=0.001, status_interval=0.001, hide_delay=0.01, rng=random.Random(3))
	options.update(overrides)
	return ProgressEstimator(**options)


@pytest.mark.asyncio
async def test_start_resets_and_shows():
	estimator = _estimator(tick_interval=10, status_interval=10)
	estimator.state.progress = 55
	estimator.start()
	assert estimator.state.progress == 0
	assert estimator.state.status == INITIAL_STATUS
	assert estimator.state.visible
	estimator.cancel()


@pytest.mark.asyncio
async def test_progress_never_passes_ceiling_while_running():
	estimator = _estimator(status_interval=10)
	seen = []
	estimator.on_update = lambda state: seen.append(state.progress)
	estimator.start()
	await asyncio.sleep(0.1)

	assert seen
	assert max(seen) <= 90
	assert seen == sorted(seen)
	estimator.cancel()


@pytest.mark.asyncio
async def test_status_rotates_in_order_then_finalizes():
	estimator = _estimator(tick_interval=10)
	statuses = []
	estimator.on_update = lambda state: statuses.append(state.status)
	estimator.start()
	await asyncio.sleep(0.3)
	estimator.cancel()

	rotated = [status for status in statuses if status != INITIAL_STATUS]
	deduped = [s for i, s in enumerate(rotated) if i == 0 or rotated[i - 1] != s]
	assert deduped[: len(STATUS_MESSAGES)] == list(STATUS_MESSAGES)
	assert deduped[-1] == OVERFLOW_STATUS


@pytest.mark.asyncio
async def test_track_completes_and_hides_after_delay():
	estimator = _estimator()
	async with estimator.track():
		await asyncio.sleep(0.005)

	assert estimator.state.progress == 100
	assert estimator.state.status == COMPLETE_STATUS
	assert estimator.state.visible

	await asyncio.sleep(0.05)
	assert not estimator.state.visible


@pytest.mark.asyncio
async def test_track_completes_on_failure():
	estimator = _estimator()
	with pytest.raises(RuntimeError):
		async with estimator.track():
			raise RuntimeError("request failed")
	assert estimator.state.progress == 100
	assert estimator.state.status == COMPLETE_STATUS


@pytest.mark.asyncio
async def test_stale_completion_is_ignored_after_cancel():
	estimator = _estimator()
	run = estimator.start()
	estimator.cancel()
	estimator.complete(run)
	assert estimator.state.progress == 0
	assert not estimator.state.visible
