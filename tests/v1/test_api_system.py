# tests/v1/test_api_system.py
"""API tests for health and public configuration."""

from __future__ import annotations

from fastapi.testclient import TestClient


def test_root_responds(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_system_health_checks_database(client: TestClient) -> None:
    body = client.get("/api/v1/system/health").json()

    assert body["status"] == "healthy"
    assert body["components"]["database"] == "healthy"


def test_public_config_has_no_secrets(client: TestClient) -> None:
    body = client.get("/api/v1/system/config").json()

    assert body["rate_limits"]["score-session"] == {"points": 20, "window_seconds": 60}
    assert body["sessions"] == {"ttl_seconds": 21600, "block_threshold": 3, "block_seconds": 900}
    assert body["captcha"] == {"provider": "hcaptcha", "configured": True}
    assert "test-secret" not in str(body)
