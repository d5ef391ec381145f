"""Fixtures for HTTP / WebSocket tests against the full app."""

import pytest
from fastapi.testclient import TestClient

from ticker_stream.main import create_app


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    """TestClient with the lifespan running (simulator ticking)."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def services(app):
    return app.state.services


@pytest.fixture
def auth_token(client):
    response = client.post("/api/auth/login", json={"username": "demo", "password": "demo123"})
    assert response.status_code == 200
    return response.json()["token"]
