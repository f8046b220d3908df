"""Tests for the root, /health and /api/status endpoints."""

import uuid

from fastapi.testclient import TestClient

from app.main import app


client = TestClient(app)


def test_root_welcome():
    response = client.get("/")
    assert response.status_code == 200
    assert "Welcome" in response.json()["message"]


def test_health_returns_ok():
    """GET /health returns 200 with status ok."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_health_version_returns_version():
    response = client.get("/health/version")
    assert response.status_code == 200
    assert response.json()["version"] == "0.1.0"


def test_status_reports_platforms_and_providers():
    response = client.get("/api/status")
    assert response.status_code == 200
    data = response.json()
    assert data["supported_platforms"] == ["flutter", "react-native", "unity", "web"]
    assert data["completion_provider"] == {"configured": True, "model": "gpt-4"}
    assert data["build_provider"] == {"configured": True}


def test_status_reports_unconfigured_build_provider(monkeypatch):
    monkeypatch.setattr("app.config.settings.CODEMAGIC_API_TOKEN", "")
    response = client.get("/api/status")
    assert response.json()["build_provider"]["configured"] is False


def test_request_id_header_generated():
    """Every response gets an X-Request-ID header."""
    response = client.get("/health")
    assert "X-Request-ID" in response.headers
    uuid.UUID(response.headers["X-Request-ID"])


def test_request_id_header_echoed():
    """Client-supplied X-Request-ID is echoed back."""
    custom_id = "my-trace-123"
    response = client.get("/health", headers={"X-Request-ID": custom_id})
    assert response.headers["X-Request-ID"] == custom_id


def test_unknown_route_is_structured_404():
    response = client.get("/nope")
    assert response.status_code == 404
    assert set(response.json()) == {"error", "detail", "request_id"}
