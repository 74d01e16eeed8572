"""Shared fixtures: stores over a temporary data directory or an in-memory database."""
import pytest
from fastapi.testclient import TestClient

from chronomap.db.session import init_db, make_engine, make_session_factory
from chronomap.main import app
from chronomap.schemas import TimelineDocument
from chronomap.services.json_store import JSONElementStore, JSONTimelineStore
from chronomap.services.sql_store import SQLElementStore, SQLTimelineStore
from chronomap.services.stores import get_element_store, get_timeline_store


@pytest.fixture
def document():
    return TimelineDocument()


@pytest.fixture
def timeline_store(tmp_path):
    return JSONTimelineStore(tmp_path)


@pytest.fixture
def element_store(tmp_path):
    return JSONElementStore(tmp_path)


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def sql_timeline_store(session_factory):
    return SQLTimelineStore(session_factory)


@pytest.fixture
def sql_element_store(session_factory):
    return SQLElementStore(session_factory)


@pytest.fixture
def client(timeline_store, element_store):
    app.dependency_overrides[get_timeline_store] = lambda: timeline_store
    app.dependency_overrides[get_element_store] = lambda: element_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
