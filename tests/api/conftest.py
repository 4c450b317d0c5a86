"""Shared test fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from interview_partner.api.dependencies import get_completion_client, get_session_store
from interview_partner.api.main import app
from interview_partner.core.memory_storage import MemorySessionStore
from tests.mocks.mock_completer import MockCompleter


@pytest.fixture
def store():
    return MemorySessionStore()


@pytest.fixture
def completer():
    return MockCompleter(["What is a project you are proud of?"])


@pytest.fixture
def client(store, completer):
    """Test client wired to a fresh store and a mock completion client."""
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_completion_client] = lambda: completer
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def session_id(client):
    response = client.post("/api/start-interview", json={"role": "software_engineer", "duration": 20})
    assert response.status_code == 200
    return response.json()["sessionId"]
