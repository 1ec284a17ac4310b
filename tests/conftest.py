import random

import pytest

from fakes import FakeGenerationService, png_image
from services.design.history_store import HistoryStore
from services.design.orchestrator import GenerationOrchestrator
from services.design.progress_estimator import ProgressEstimator


@pytest.fixture
def service():
	return FakeGenerationService()


@pytest.fixture
def scene():
	return png_image((120, 110, 90), (64, 36))


@pytest.fixture
def fast_progress():
	return ProgressEstimator(
		tick_interval=0.001,
		status_interval=0.002,
		hide_delay=0.001,
		rng=random.Random(7),
	)


@pytest.fixture
def orchestrator(service, scene, fast_progress):
	return GenerationOrchestrator(
		service,
		history=HistoryStore(capacity=3),
		progress=fast_progress,
		scene_factory=lambda: scene,
	)
