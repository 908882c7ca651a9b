"""
测试协作方装配
"""
import pytest

from frontdesk.config import Settings
from frontdesk.models.ontology import GuestModel
from frontdesk.pms.factory import build_collaborators, build_identity_service, prepare_sql_backend
from frontdesk.pms.identity_client import HttpIdentityService
from frontdesk.pms.memory import (
    InMemoryPmsState, InMemoryReservationStore, InMemoryRoomStore, MockIdentityService,
)
from frontdesk.pms.sql import SqlReservationStore, SqlRoomStore


def _settings(**overrides):
    return Settings(_env_file=None, **overrides)


class TestBuildCollaborators:
    def test_memory_backend_seeds_demo_data(self):
        collaborators = build_collaborators(_settings(PMS_BACKEND="memory", SEED_DEMO_DATA=True))
        assert isinstance(collaborators.reservations, InMemoryReservationStore)
        assert isinstance(collaborators.rooms, InMemoryRoomStore)
        assert isinstance(collaborators.identity, MockIdentityService)
        assert collaborators.reservations.find_by_guest_name("张伟").found

    def test_memory_backend_without_seed(self):
        collaborators = build_collaborators(_settings(PMS_BACKEND="memory", SEED_DEMO_DATA=False))
        assert collaborators.rooms.list_rooms() == []

    def test_memory_backend_shares_given_state(self):
        state = InMemoryPmsState()
        collaborators = build_collaborators(_settings(PMS_BACKEND="memory"), memory_state=state)
        assert collaborators.reservations.state is state
        assert collaborators.rooms.state is state

    def test_sql_backend(self, session_factory):
        collaborators = build_collaborators(_settings(PMS_BACKEND="sql"), session_factory=session_factory)
        assert isinstance(collaborators.reservations, SqlReservationStore)
        assert isinstance(collaborators.rooms, SqlRoomStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            build_collaborators(_settings(PMS_BACKEND="oracle"))


class TestBuildIdentityService:
    def test_http(self):
        service = build_identity_service(_settings(
            IDENTITY_BACKEND="http", IDENTITY_SERVICE_URL="http://identity.local", IDENTITY_TIMEOUT_SECONDS=7,
        ))
        assert isinstance(service, HttpIdentityService)
        assert service.base_url == "http://identity.local"
        assert service.timeout == 7

    def test_unknown(self):
        with pytest.raises(ValueError):
            build_identity_service(_settings(IDENTITY_BACKEND="carrier-pigeon"))


class TestPrepareSqlBackend:
    def test_seeds_once(self, session_factory, db_session):
        settings = _settings(PMS_BACKEND="sql", SEED_DEMO_DATA=True)
        prepare_sql_backend(settings, session_factory=session_factory)
        prepare_sql_backend(settings, session_factory=session_factory)
        assert db_session.query(GuestModel).count() == 5

    def test_memory_backend_is_noop(self, session_factory, db_session):
        prepare_sql_backend(_settings(PMS_BACKEND="memory"), session_factory=session_factory)
        assert db_session.query(GuestModel).count() == 0
