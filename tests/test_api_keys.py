"""
Tests for API key management endpoints (/api/v1/api-keys).
"""

from fastapi import status
from fastapi.testclient import TestClient


class TestCreateKey:
    def test_create_returns_key_once(self, client: TestClient, alice_headers: dict):
        response = client.post("/api/v1/api-keys", json={"name": "prod"}, headers=alice_headers)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["name"] == "prod"
        assert data["key"].startswith("shd_")
        assert data["key_prefix"] == data["key"][:16]
        assert "warning" in data

        listing = client.get("/api/v1/api-keys", headers=alice_headers).json()
        assert len(listing) == 1
        assert "key" not in listing[0]
        assert "key_hash" not in listing[0]
        assert listing[0]["key_prefix"] == data["key_prefix"]

    def test_create_without_body_uses_default_name(self, client: TestClient, alice_headers: dict):
        response = client.post("/api/v1/api-keys", headers=alice_headers)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["name"] == "Default Key"

    def test_create_requires_login(self, client: TestClient):
        response = client.post("/api/v1/api-keys", json={"name": "prod"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestListAndGet:
    def test_only_own_keys(self, client: TestClient, alice_headers: dict, alice_key, bob_key):
        listing = client.get("/api/v1/api-keys", headers=alice_headers).json()
        assert [k["id"] for k in listing] == [alice_key.id]

    def test_get_own_key(self, client: TestClient, alice_headers: dict, alice_key):
        response = client.get(f"/api/v1/api-keys/{alice_key.id}", headers=alice_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["usage_count"] == 0
        assert response.json()["allowed_endpoints"] == ["*"]

    def test_get_other_users_key(self, client: TestClient, alice_headers: dict, bob_key):
        response = client.get(f"/api/v1/api-keys/{bob_key.id}", headers=alice_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "not_found"


class TestRevoke:
    def test_revoke(self, client: TestClient, alice_headers: dict, alice_key):
        response = client.delete(f"/api/v1/api-keys/{alice_key.id}", headers=alice_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT

        assert client.get("/api/v1/api-keys", headers=alice_headers).json() == []

        revoked = client.get(
            "/api/v1/api-keys", params={"include_revoked": True}, headers=alice_headers
        ).json()
        assert revoked[0]["is_active"] is False
        assert revoked[0]["revoked_at"] is not None

    def test_revoked_key_stops_working(self, client: TestClient, alice_headers: dict, alice_key):
        client.delete(f"/api/v1/api-keys/{alice_key.id}", headers=alice_headers)

        response = client.get(
            "/api/v1/tools/shorturl/list",
            headers={"X-API-Key": alice_key.plaintext_key},
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "invalid_api_key"

    def test_revoke_other_users_key(self, client: TestClient, alice_headers: dict, bob_key):
        response = client.delete(f"/api/v1/api-keys/{bob_key.id}", headers=alice_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_revoke_twice(self, client: TestClient, alice_headers: dict, alice_key):
        client.delete(f"/api/v1/api-keys/{alice_key.id}", headers=alice_headers)
        response = client.delete(f"/api/v1/api-keys/{alice_key.id}", headers=alice_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
