"""
Tests for profile and usage endpoints (/api/v1/users/me) and the
health check.
"""

from fastapi import status
from fastapi.testclient import TestClient

from app.models.user import User

LIST_URL = "/api/v1/tools/shorturl/list"


class TestProfile:
    def test_profile(self, client: TestClient, alice_headers: dict, alice_key, key_headers: dict):
        client.get(LIST_URL, headers=key_headers)

        response = client.get("/api/v1/users/me", headers=alice_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["user"]["username"] == "alice"
        assert data["usage"]["usage_today"] == 1
        assert data["usage"]["total_requests"] == 1
        assert data["active_api_keys"] == 1

    def test_profile_requires_token(self, client: TestClient):
        assert client.get("/api/v1/users/me").status_code == status.HTTP_401_UNAUTHORIZED

    def test_api_key_is_not_a_login(self, client: TestClient, key_headers: dict):
        assert client.get("/api/v1/users/me", headers=key_headers).status_code == 401


class TestUsage:
    def test_usage_summary(self, client: TestClient, alice_headers: dict, key_headers: dict):
        for _ in range(3):
            client.get(LIST_URL, headers=key_headers)

        data = client.get("/api/v1/users/me/usage", headers=alice_headers).json()

        assert data["usage_today"] == 3
        assert data["today_requests"] == 3
        assert data["daily_limit"] == 1000
        assert data["last_request"] is not None

    def test_usage_logs(self, client: TestClient, alice_headers: dict, key_headers: dict, bob_key):
        client.get(LIST_URL, headers=key_headers)
        client.get(LIST_URL, headers={"X-API-Key": bob_key.plaintext_key})

        logs = client.get("/api/v1/users/me/usage/logs", headers=alice_headers).json()

        assert len(logs) == 1
        assert logs[0]["endpoint"] == "shorturl_list"
        assert logs[0]["key_display"].endswith("...")


class TestHealth:
    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["version"] == "1.0.0"
        assert data["environment"] == "test"
        assert data["quota"]["default_daily_limit"] == 1000
        assert data["authentication"]["query_param"] == "apiKey"

    def test_root(self, client: TestClient):
        assert client.get("/").json()["health"] == "/health"


class TestErrorEnvelope:
    def test_missing_token(self, client: TestClient):
        response = client.get("/api/v1/users/me")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {
            "success": False,
            "error": "unauthorized",
            "message": "Not authenticated",
        }
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_unknown_route(self, client: TestClient):
        response = client.get("/api/v1/nope")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["success"] is False
        assert response.json()["error"] == "not_found"

    def test_validation_error(self, client: TestClient, alice_headers: dict):
        response = client.get("/api/v1/users/me/usage/logs", params={"limit": 0}, headers=alice_headers)

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"][0]["loc"] == ["query", "limit"]

    def test_error_model_documented(self, client: TestClient):
        schema = client.get("/openapi.json").json()

        assert "ErrorResponse" in schema["components"]["schemas"]
        responses = schema["paths"]["/api/v1/tools/shorturl"]["post"]["responses"]
        assert responses["409"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
