"""
Unit tests for the FastAPI application.

These tests verify that the app mounts the documents and index routers,
that the health endpoint works, and that requests get a correlation id.
"""

import pytest
from fastapi.testclient import TestClient


class TestAppHealth:
    """Tests for the health endpoint."""

    def test_health_endpoint_returns_ok(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health_endpoint_includes_service_name(self, test_client):
        response = test_client.get("/health")

        assert response.json()["service"] == "docstore-gateway"


class TestRequestId:
    """Tests for the request logging middleware."""

    def test_request_id_is_echoed(self, test_client):
        response = test_client.get("/health", headers={"X-Request-Id": "req-42"})

        assert response.headers["X-Request-Id"] == "req-42"

    def test_request_id_is_generated(self, test_client):
        response = test_client.get("/health")

        assert response.headers["X-Request-Id"]


class TestRouterMounting:
    """Tests for router mounting."""

    def test_routes_are_registered(self, test_client):
        paths = test_client.get("/openapi.json").json()["paths"]

        assert "/documents/{bucket}/upload" in paths
        assert "/documents/{bucket}/download/{key}" in paths
        assert "/documents/buckets/{bucket}" in paths
        assert "/index/search" in paths
        assert "/index/{entry_id}/tags" in paths


# --- Fixtures ---


@pytest.fixture
def test_client():
    """Provides a TestClient for the app."""
    from app.main import app

    return TestClient(app)
