"""Integration tests for the auth API."""

import re
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
import respx

from wayfarer.core.config import get_settings
from wayfarer.infrastructure.api.middleware import login_rate_limit_storage
from wayfarer.infrastructure.oauth import GoogleOAuthHandler, OAuthProviderRegistry

API = "/api/v1/auth"
PASSWORD = "Str0ng!Passw0rd"

pytestmark = pytest.mark.integration


async def register(client, email="jane@example.com", username="jane", password=PASSWORD):
    return await client.post(
        f"{API}/register",
        json={"email": email, "username": username, "password": password},
    )


async def login(client, identifier="jane", password=PASSWORD):
    key = "email" if "@" in identifier else "username"
    return await client.post(f"{API}/login", json={key: identifier, "password": password})


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def link_token(text_body: str) -> str:
    return re.search(r"token=([A-Za-z0-9_-]+)", text_body).group(1)


@pytest.mark.asyncio
class TestRegister:
    """Tests for POST /register."""

    async def test_register(self, client, email_provider):
        response = await register(client, email="Jane@Example.com")

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "jane@example.com"
        assert data["user"]["email_verified"] is False
        assert data["tokens"]["token_type"] == "bearer"
        assert data["tokens"]["expires_in"] == 900
        assert data["verification_token"]
        assert "password_hash" not in data["user"]
        assert link_token(email_provider.outbox[0].text_body) == data["verification_token"]

    async def test_duplicate_email(self, client):
        await register(client)

        response = await register(client, username="jane2")

        assert response.status_code == 409
        assert response.json()["error"] == "Conflict"

    async def test_weak_password(self, client):
        response = await register(client, password="weak")

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation Error"
        assert body["details"][0]["field"] == "password"
        assert "at least 8 characters" in body["message"]

    async def test_invalid_username(self, client):
        response = await register(client, username="no spaces!")

        assert response.status_code == 400


@pytest.mark.asyncio
class TestLogin:
    """Tests for POST /login."""

    async def test_login_by_username_and_email(self, client):
        await register(client)

        by_username = await login(client, "jane")
        by_email = await login(client, "JANE@example.com")

        assert by_username.status_code == 200
        assert by_email.status_code == 200
        assert by_email.json()["user"]["username"] == "jane"

    async def test_invalid_credentials(self, client):
        await register(client)

        wrong_password = await login(client, "jane", "Wr0ng!Password")
        unknown_user = await login(client, "nobody", PASSWORD)

        assert wrong_password.status_code == unknown_user.status_code == 401
        assert wrong_password.json() == unknown_user.json()
        assert wrong_password.headers["WWW-Authenticate"] == "Bearer"

    async def test_identifier_required(self, client):
        response = await client.post(f"{API}/login", json={"password": PASSWORD})

        assert response.status_code == 400
        assert "Email or username is required" in response.json()["message"]

    async def test_lockout(self, client):
        await register(client)
        for _ in range(5):
            login_rate_limit_storage.reset()
            assert (await login(client, "jane", "Wr0ng!Password")).status_code == 401

        login_rate_limit_storage.reset()
        response = await login(client, "jane", PASSWORD)

        assert response.status_code == 429
        assert "15 minutes" in response.json()["message"]

    async def test_rate_limit(self, client):
        for _ in range(5):
            await login(client, "nobody", PASSWORD)

        response = await login(client, "nobody", PASSWORD)

        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) >= 1

    async def test_spoofed_forwarded_for_does_not_evade_rate_limit(self, client):
        statuses = []
        for i in range(6):
            response = await client.post(
                f"{API}/login",
                json={"username": "nobody", "password": PASSWORD},
                headers={"X-Forwarded-For": f"10.0.0.{i}"},
            )
            statuses.append(response.status_code)

        assert statuses == [401] * 5 + [429]

    async def test_spoofed_forwarded_for_does_not_reset_lockout(self, client):
        await register(client)
        for i in range(5):
            login_rate_limit_storage.reset()
            response = await client.post(
                f"{API}/login",
                json={"username": "jane", "password": "Wr0ng!Password"},
                headers={"X-Forwarded-For": f"10.0.0.{i}"},
            )
            assert response.status_code == 401

        login_rate_limit_storage.reset()
        response = await client.post(
            f"{API}/login",
            json={"username": "jane", "password": PASSWORD},
            headers={"X-Forwarded-For": "10.0.0.99"},
        )

        assert response.status_code == 429
        assert "15 minutes" in response.json()["message"]


@pytest.mark.asyncio
class TestSession:
    """Tests for refresh, profile and logout."""

    async def test_refresh_rotates(self, client):
        tokens = (await register(client)).json()["tokens"]

        response = await client.post(
            f"{API}/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        replay = await client.post(f"{API}/refresh", json={"refresh_token": tokens["refresh_token"]})

        assert response.status_code == 200
        assert response.json()["refresh_token"] != tokens["refresh_token"]
        assert replay.status_code == 401

    async def test_login_ends_previous_session(self, client):
        first = (await register(client)).json()["tokens"]
        await login(client)

        response = await client.post(f"{API}/refresh", json={"refresh_token": first["refresh_token"]})

        assert response.status_code == 401

    async def test_profile(self, client):
        tokens = (await register(client)).json()["tokens"]

        response = await client.get(f"{API}/profile", headers=bearer(tokens["access_token"]))

        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "jane"
        assert data["expires_at"] - data["issued_at"] == 900

    @pytest.mark.parametrize(
        "headers,message",
        [
            ({}, "Missing Authorization header"),
            ({"Authorization": "Token abc"}, "Invalid Authorization header format"),
            ({"Authorization": "Bearer not-a-jwt"}, "Invalid access token"),
        ],
    )
    async def test_profile_unauthorized(self, client, headers, message):
        response = await client.get(f"{API}/profile", headers=headers)

        assert response.status_code == 401
        assert response.json()["message"] == message

    async def test_logout(self, client):
        tokens = (await register(client)).json()["tokens"]
        headers = bearer(tokens["access_token"])

        response = await client.post(
            f"{API}/logout", headers=headers, json={"refresh_token": tokens["refresh_token"]}
        )

        assert response.status_code == 200
        assert (await client.get(f"{API}/profile", headers=headers)).status_code == 401
        refresh = await client.post(f"{API}/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert refresh.status_code == 401

    async def test_logout_without_body(self, client):
        tokens = (await register(client)).json()["tokens"]

        response = await client.post(f"{API}/logout", headers=bearer(tokens["access_token"]))

        assert response.status_code == 200


@pytest.mark.asyncio
class TestEmailVerification:
    """Tests for verify-email and resend-verification."""

    async def test_verify_email(self, client):
        token = (await register(client)).json()["verification_token"]

        response = await client.post(f"{API}/verify-email", json={"token": token})

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["user"]["email_verified"] is True

    async def test_invalid_token(self, client):
        response = await client.post(f"{API}/verify-email", json={"token": "bogus"})

        assert response.status_code == 200
        assert response.json() == {
            "success": False,
            "message": "Invalid or expired verification token",
            "user": None,
        }

    async def test_resend_answers_the_same(self, client, email_provider):
        await register(client)

        known = await client.post(
            f"{API}/resend-verification", json={"email": "jane@example.com"}
        )
        unknown = await client.post(
            f"{API}/resend-verification", json={"email": "nobody@example.com"}
        )

        assert known.json() == unknown.json()
        assert len(email_provider.outbox) == 2


@pytest.mark.asyncio
class TestPasswordReset:
    """Tests for forgot-password and reset-password."""

    async def test_full_flow(self, client, email_provider):
        old_tokens = (await register(client)).json()["tokens"]

        response = await client.post(f"{API}/forgot-password", json={"email": "jane@example.com"})
        assert response.status_code == 200
        token = link_token(email_provider.outbox[-1].text_body)

        response = await client.post(
            f"{API}/reset-password", json={"token": token, "new_password": "N3w!Password"}
        )
        assert response.status_code == 200

        assert (await login(client, "jane", PASSWORD)).status_code == 401
        assert (await login(client, "jane", "N3w!Password")).status_code == 200
        refresh = await client.post(
            f"{API}/refresh", json={"refresh_token": old_tokens["refresh_token"]}
        )
        assert refresh.status_code == 401

        replay = await client.post(
            f"{API}/reset-password", json={"token": token, "new_password": "An0ther!Password"}
        )
        assert replay.status_code == 401

    async def test_forgot_password_unknown_email(self, client, email_provider):
        response = await client.post(
            f"{API}/forgot-password", json={"email": "nobody@example.com"}
        )

        assert response.status_code == 200
        assert email_provider.outbox == []

    async def test_reset_rejects_weak_password(self, client):
        response = await client.post(
            f"{API}/reset-password", json={"token": "a" * 64, "new_password": "weak"}
        )

        assert response.status_code == 400

    async def test_reset_rejects_malformed_token(self, client):
        response = await client.post(
            f"{API}/reset-password", json={"token": "bad token!", "new_password": "N3w!Password"}
        )

        assert response.status_code == 400


@pytest.mark.asyncio
class TestOAuth:
    """Tests for the OAuth endpoints."""

    @pytest.fixture
    def google_enabled(self, client):
        from wayfarer.infrastructure.api.app import app

        settings = get_settings().model_copy(
            update={"google_client_id": "google-client", "google_client_secret": "google-secret"}
        )
        app.state.oauth_registry = OAuthProviderRegistry(settings)

    async def test_unconfigured_provider(self, client):
        response = await client.get(f"{API}/google")

        assert response.status_code == 404
        assert response.json()["message"] == "OAuth provider 'google' is not configured"

    async def test_apple_unconfigured(self, client):
        response = await client.post(f"{API}/apple", json={"id_token": "token"})

        assert response.status_code == 404

    async def test_google_flow(self, client, google_enabled):
        response = await client.get(f"{API}/google")
        assert response.status_code == 302
        state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]

        with respx.mock:
            respx.post(GoogleOAuthHandler.token_endpoint).mock(
                return_value=httpx.Response(200, json={"access_token": "ya29.token"})
            )
            respx.get(GoogleOAuthHandler.userinfo_endpoint).mock(
                return_value=httpx.Response(
                    200,
                    json={
                        "id": "g-42",
                        "email": "jane@example.com",
                        "verified_email": True,
                        "name": "Jane Doe",
                    },
                )
            )
            response = await client.get(
                f"{API}/google/callback", params={"code": "auth-code", "state": state}
            )

        assert response.status_code == 200
        data = response.json()
        assert data["provider"] == "google"
        assert data["is_new_user"] is True
        assert data["user"]["username"] == "janedoe"
        assert data["user"]["email_verified"] is True

        providers = await client.get(
            f"{API}/oauth/providers", headers=bearer(data["access_token"])
        )
        assert [link["provider"] for link in providers.json()] == ["google"]

        replay = await client.get(
            f"{API}/google/callback", params={"code": "auth-code", "state": state}
        )
        assert replay.status_code == 401

    async def test_callback_unknown_state(self, client, google_enabled):
        response = await client.get(
            f"{API}/google/callback", params={"code": "auth-code", "state": "forged"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired OAuth state"

    async def test_callback_provider_error(self, client, google_enabled):
        response = await client.get(f"{API}/google/callback", params={"error": "access_denied"})

        assert response.status_code == 401
        assert response.json()["message"] == "Google authorization failed: access_denied"

    async def test_unlink_not_linked(self, client):
        tokens = (await register(client)).json()["tokens"]

        response = await client.delete(
            f"{API}/oauth/providers/google", headers=bearer(tokens["access_token"])
        )

        assert response.status_code == 409


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Correlation-ID"].startswith("cid_")
