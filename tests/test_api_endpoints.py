"""
Tests for API Endpoints

This test suite verifies:
- Health check endpoint
- Registration (success, duplicate name, invalid body)
- Verification (match, no match, closest identity wins)
- User management endpoints (list, delete)
- The capture client against the real application over ASGI

Every test gets its own in-memory template store through
``app.dependency_overrides``.

Run with: pytest tests/test_api_endpoints.py -v
"""

import os
import sys

import httpx
import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from api.app import app
from api.dependencies import embedding_matcher, template_store
from core.matching import EuclideanEmbeddingMatcher
from core.template_manager import TemplateManager
from frontend.api_client import IdentityClient


def descriptor(value: float, index: int = 0) -> list:
    """A 128-d descriptor that is zero except at ``index``."""
    vec = np.zeros(128, dtype=np.float32)
    vec[index] = value
    return vec.tolist()


@pytest.fixture
def store():
    manager = TemplateManager(":memory:")
    yield manager
    manager.close()


@pytest.fixture
def client(store):
    """Test client bound to a fresh store and the default 0.6 threshold."""
    app.dependency_overrides[template_store] = lambda: store
    app.dependency_overrides[embedding_matcher] = lambda: EuclideanEmbeddingMatcher()
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================
# System
# ============================================================

class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check_returns_status(self, client):
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["enrolled_users"] == 0
        assert data["distance_threshold"] == pytest.approx(0.6)

    def test_health_counts_users(self, client):
        client.post("/api/register", json={"name": "Alice", "descriptor": descriptor(0.1)})
        assert client.get("/health").json()["enrolled_users"] == 1

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"


# ============================================================
# Registration
# ============================================================

class TestRegisterEndpoint:
    """Tests for POST /api/register."""

    def test_register_success(self, client, store):
        response = client.post(
            "/api/register", json={"name": "Alice", "descriptor": descriptor(0.1)}
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert store.user_exists("Alice")

    def test_register_strips_name(self, client, store):
        client.post("/api/register", json={"name": "  Alice ", "descriptor": descriptor(0.1)})
        assert store.user_exists("Alice")

    def test_duplicate_name_rejected(self, client):
        body = {"name": "Alice", "descriptor": descriptor(0.1)}
        client.post("/api/register", json=body)

        response = client.post("/api/register", json=body)

        assert response.status_code == 409
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "User 'Alice' already exists. Please use a different name."

    def test_blank_name_rejected(self, client, store):
        response = client.post(
            "/api/register", json={"name": "   ", "descriptor": descriptor(0.1)}
        )

        assert response.status_code == 422
        assert response.json() == {"success": False, "message": "Name is required"}
        assert store.get_stats()["total_users"] == 0

    def test_short_descriptor_rejected(self, client):
        response = client.post(
            "/api/register", json={"name": "Alice", "descriptor": [0.1] * 64}
        )

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["message"].startswith("Invalid request: descriptor")

    def test_missing_body_fields_rejected(self, client):
        response = client.post("/api/register", json={})
        assert response.status_code == 422
        assert response.json()["success"] is False


# ============================================================
# Verification
# ============================================================

class TestVerifyEndpoint:
    """Tests for POST /api/verify."""

    def test_match(self, client):
        client.post("/api/register", json={"name": "Alice", "descriptor": descriptor(0.1)})

        response = client.post("/api/verify", json={"descriptor": descriptor(0.3)})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["user"] == {"name": "Alice"}
        assert data["distance"] == pytest.approx(0.2, abs=1e-6)

    def test_no_match_beyond_threshold(self, client):
        client.post("/api/register", json={"name": "Alice", "descriptor": descriptor(0.1)})

        response = client.post("/api/verify", json={"descriptor": descriptor(0.9)})

        assert response.json() == {"success": False}

    def test_no_match_with_empty_store(self, client):
        response = client.post("/api/verify", json={"descriptor": descriptor(0.1)})
        assert response.json() == {"success": False}

    def test_closest_identity_wins(self, client):
        client.post("/api/register", json={"name": "Alice", "descriptor": descriptor(0.1)})
        client.post("/api/register", json={"name": "Bob", "descriptor": descriptor(0.4)})

        response = client.post("/api/verify", json={"descriptor": descriptor(0.35)})

        assert response.json()["user"]["name"] == "Bob"


# ============================================================
# Management
# ============================================================

class TestUserEndpoints:
    """Tests for user management endpoints."""

    def test_list_users_empty(self, client):
        response = client.get("/api/users")
        assert response.status_code == 200
        assert response.json() == []

    def test_list_users_in_enrollment_order(self, client):
        for name in ("Carol", "Alice", "Bob"):
            client.post("/api/register", json={"name": name, "descriptor": descriptor(0.1)})

        assert [u["name"] for u in client.get("/api/users").json()] == ["Carol", "Alice", "Bob"]

    def test_delete_user(self, client, store):
        client.post("/api/register", json={"name": "Ann Lee", "descriptor": descriptor(0.1)})

        response = client.delete("/api/delete/Ann%20Lee")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "User Ann Lee deleted"}
        assert not store.user_exists("Ann Lee")

    def test_delete_nonexistent_user(self, client):
        response = client.delete("/api/delete/Zed")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "User Zed not found"}


# ============================================================
# Client against the application
# ============================================================

class TestClientAgainstApp:
    """IdentityClient talking to the application over ASGI."""

    @pytest.fixture
    def identity_client(self, store):
        app.dependency_overrides[template_store] = lambda: store
        app.dependency_overrides[embedding_matcher] = lambda: EuclideanEmbeddingMatcher()
        client = IdentityClient("http://testserver", transport=httpx.ASGITransport(app=app))
        yield client
        app.dependency_overrides.clear()

    @pytest.mark.asyncio
    async def test_full_identity_lifecycle(self, identity_client):
        template = np.full(128, 0.05, dtype=np.float32)

        registered = await identity_client.register("Ann Lee", template)
        assert registered.success is True

        duplicate = await identity_client.register("Ann Lee", template)
        assert duplicate.success is False
        assert "already exists" in duplicate.message

        verified = await identity_client.verify(template + 0.001)
        assert verified.success is True
        assert verified.user.name == "Ann Lee"

        users = await identity_client.list_users()
        assert [u.name for u in users] == ["Ann Lee"]

        deleted = await identity_client.delete_user("Ann Lee")
        assert deleted.success is True

        missing = await identity_client.delete_user("Ann Lee")
        assert missing.success is False

        denied = await identity_client.verify(template)
        assert denied.success is False

        await identity_client.aclose()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
