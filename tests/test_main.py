"""
Tests for the main application endpoints.
"""
from fastapi.testclient import TestClient

from smartcare.main import create_app

def test_root_endpoint(client):
    """
    Test the root endpoint returns a welcome message.
    """
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "message" in data
    assert "version" in data


def test_health_check(client):
    """
    Test the health check endpoint reports the session status.
    """
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["identity_configured"] is True
    assert data["session"] == "unauthenticated"


def test_request_id_header(client):
    """
    Test every response carries the request id set by the logging middleware.
    """
    response = client.get("/")
    assert "X-Request-ID" in response.headers


def test_without_identity_provider(db, monkeypatch):
    """
    Test the API stays up with authentication disabled when Supabase is not configured.
    """
    monkeypatch.setattr("smartcare.main.settings.supabase_url", "")
    with TestClient(create_app()) as client:
        health = client.get("/health").json()
        response = client.get("/api/v1/auth/session")

    assert health["identity_configured"] is False
    assert response.status_code == 503
    assert response.json()["code"] == "identity_unavailable"
