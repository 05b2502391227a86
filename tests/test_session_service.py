from datetime import timedelta

import pytest

from app.services.packing_controller import PACKING_LIST_KEY, TRIP_DETAILS_KEY, PackingListController
from app.services.packing_service import PackingListService
from app.services.session_service import SessionNotFoundError, SessionService
from app.services.storage_service import MemoryStorageRegistry
from mock_llm_service import MockTextGenerator


@pytest.fixture
def registry():
    return MemoryStorageRegistry()


@pytest.fixture
def sessions(registry):
    service = PackingListService(MockTextGenerator())
    return SessionService(
        controller_factory=lambda storage: PackingListController(service, storage),
        storage_factory=registry.for_session,
        ttl_hours=4,
        storage_release=registry.release,
    )


def test_create_session(sessions):
    session_id, expires_at = sessions.create_session()

    assert session_id.startswith("sess_")
    assert sessions.is_session_valid(session_id) == (True, "Session is valid")
    assert isinstance(sessions.get_controller(session_id), PackingListController)
    assert sessions.get_expiry(session_id) == expires_at


def test_resume_live_session_returns_same_controller(sessions):
    session_id, _ = sessions.create_session()
    controller = sessions.get_controller(session_id)

    resumed_id, _ = sessions.create_session(session_id)

    assert resumed_id == session_id
    assert sessions.get_controller(session_id) is controller


def test_unknown_session(sessions):
    assert sessions.is_session_valid("sess_nope") == (False, "Session does not exist")
    with pytest.raises(SessionNotFoundError):
        sessions.get_controller("sess_nope")


def test_expired_session_is_evicted(sessions):
    session_id, _ = sessions.create_session()
    controller, _ = sessions._sessions[session_id]
    sessions._sessions[session_id] = (controller, sessions._now() - timedelta(seconds=1))

    assert sessions.is_session_valid(session_id) == (False, "Session has expired")
    with pytest.raises(SessionNotFoundError):
        sessions.get_controller(session_id)
    assert session_id not in sessions._sessions


def test_resumed_session_restores_saved_list(sessions, registry):
    storage = registry.for_session("sess_returning")
    storage.set(PACKING_LIST_KEY, '{"footwear": ["Hiking boots"]}')
    storage.set(TRIP_DETAILS_KEY, '{"destination": "Zagreb", "startDate": "2025-12-01", "endDate": "2025-12-03"}')

    session_id, _ = sessions.create_session("sess_returning")
    controller = sessions.get_controller(session_id)

    assert session_id == "sess_returning"
    assert controller.packing_list.footwear == ["Hiking boots"]
    assert controller.saved_trip_details.destination == "Zagreb"


def test_creating_a_session_sweeps_expired_ones(sessions, registry, monkeypatch):
    abandoned = [sessions.create_session()[0] for _ in range(3)]
    saved_id, _ = sessions.create_session("sess_saved")
    registry.for_session(saved_id).set(PACKING_LIST_KEY, '{"footwear": ["Sandals"]}')

    later = sessions._now() + timedelta(hours=5)
    monkeypatch.setattr(sessions, "_now", lambda: later)
    fresh_id, _ = sessions.create_session()

    assert list(sessions._sessions) == [fresh_id]
    assert all(session_id not in registry._namespaces for session_id in abandoned)
    assert saved_id in registry._namespaces


def test_sweep_keeps_live_sessions(sessions):
    session_id, _ = sessions.create_session()

    assert sessions.sweep_expired() == 0
    assert sessions.is_session_valid(session_id) == (True, "Session is valid")
