"""Tests for the /api/auth routes."""

from usergate.auth import ACCESS_COOKIE, REFRESH_COOKIE, TokenKind


def _set_cookies(response):
    return response.headers.get_list("set-cookie")


class TestRegister:
    def test_register_creates_user(self, client):
        response = client.post(
            "/api/auth/register",
            json={"username": "carol", "email": "Carol@Example.com", "password": "carol-password"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["username"] == "carol"
        assert body["data"]["email"] == "carol@example.com"
        assert body["data"]["role"] == "user"
        assert "password_hash" not in body["data"]

    def test_register_ignores_role_field(self, client):
        response = client.post(
            "/api/auth/register",
            json={"username": "eve", "email": "eve@example.com", "password": "eve-password", "role": "admin"},
        )

        assert response.json()["data"]["role"] == "user"

    def test_duplicate_username_conflicts(self, client, alice):
        response = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "another@example.com", "password": "password123"},
        )

        assert response.status_code == 409
        assert response.json()["success"] is False

    def test_validation_errors_use_envelope(self, client):
        response = client.post("/api/auth/register", json={"username": "al", "email": "bad", "password": "short"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "password" in body["message"]


class TestLogin:
    def test_login_sets_session_cookies(self, client, context, alice):
        response = client.post("/api/auth/login", json={"username": "alice", "password": "alice-password"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Authentication successful"
        assert body["data"]["user"]["id"] == alice.id
        cookies = _set_cookies(response)
        assert any(c.startswith(f"{ACCESS_COOKIE}=") and "HttpOnly" in c for c in cookies)
        assert any(c.startswith(f"{REFRESH_COOKIE}=") and "Path=/" in c for c in cookies)
        claims = context.verifier.verify(response.cookies[ACCESS_COOKIE], TokenKind.ACCESS)
        assert claims.id == alice.id

    def test_wrong_password(self, client, alice):
        response = client.post("/api/auth/login", json={"username": "alice", "password": "nope"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid credentials"}
        assert _set_cookies(response) == []

    def test_missing_fields(self, client):
        response = client.post("/api/auth/login", json={"username": "alice"})

        assert response.status_code == 400


class TestRefresh:
    def test_refresh_without_cookie(self, client):
        response = client.post("/api/auth/refresh")

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Refresh token is required"}
        assert _set_cookies(response) == []

    def test_refresh_rotates_cookies(self, client, context, alice):
        login = client.post("/api/auth/login", json={"username": "alice", "password": "alice-password"})
        old_refresh = login.cookies[REFRESH_COOKIE]

        response = client.post("/api/auth/refresh")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Token refreshed successfully"}
        assert response.cookies[REFRESH_COOKIE] != old_refresh
        assert context.verifier.verify(response.cookies[ACCESS_COOKIE], TokenKind.ACCESS)

    def test_access_token_in_refresh_cookie_rejected(self, client, context, alice):
        token = context.issuer.issue_access(alice.principal)

        response = client.post("/api/auth/refresh", headers={"Cookie": f"{REFRESH_COOKIE}={token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired refresh token"
        assert len(_set_cookies(response)) == 2

    def test_refresh_for_deleted_user(self, client, context, alice):
        client.post("/api/auth/login", json={"username": "alice", "password": "alice-password"})
        context.storage.collections["users"].clear()

        response = client.post("/api/auth/refresh")

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"
        assert len(_set_cookies(response)) == 2
        assert all("Max-Age=0" in c for c in _set_cookies(response))


class TestLogout:
    def test_logout_clears_cookies(self, client, alice):
        client.post("/api/auth/login", json={"username": "alice", "password": "alice-password"})

        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Logged out successfully"}
        cleared = _set_cookies(response)
        assert {c.split("=", 1)[0] for c in cleared} == {ACCESS_COOKIE, REFRESH_COOKIE}
        assert all("Max-Age=0" in c for c in cleared)
