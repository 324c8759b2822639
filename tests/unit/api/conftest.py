"""Fixtures for HTTP and WebSocket endpoint tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from mobide.config import Settings
from mobide.main import create_app
from tests.fakes import FakeDriver


@pytest.fixture
def echo_driver() -> FakeDriver:
    """Driver whose terminals echo every keystroke back."""
    return FakeDriver(echo=True)


@pytest.fixture
def client(test_settings: Settings, echo_driver: FakeDriver):
    app = create_app(test_settings, driver=echo_driver)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def session_id(client: TestClient) -> str:
    response = client.post("/api/session")
    assert response.status_code == 200
    return response.json()["sessionId"]
