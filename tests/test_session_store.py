import pytest

from fakes import FakeGenerationService
from services.design.session_store import DesignSessionStore


def test_create_get_discard():
	store = DesignSessionStore(FakeGenerationService())
	session_id, orchestrator = store.create()

	assert store.get(session_id) is orchestrator
	assert len(store) == 1

	store.discard(session_id)
	assert len(store) == 0
	with pytest.raises(KeyError):
		store.get(session_id)


def test_sessions_are_independent():
	store = DesignSessionStore(FakeGenerationService())
	first_id, first = store.create()
	second_id, second = store.create()

	first.set_prompt("only here")
	assert first_id != second_id
	assert second.session.prompt == ""
