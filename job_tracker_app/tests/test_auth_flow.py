"""
Test the authentication flow: Google sign-in, credential resolution, logout.
"""
from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi import status

from backend.services.oauth import IdentityAssertion


def _tamper(token: str) -> str:
    """Flip one character inside the signature segment."""
    header, payload, signature = token.split(".")
    middle = len(signature) // 2
    replacement = "A" if signature[middle] != "A" else "B"
    return ".".join([header, payload, signature[:middle] + replacement + signature[middle + 1:]])


def _start_login(client):
    response = client.get("/api/auth/google", follow_redirects=False)
    assert response.status_code == status.HTTP_302_FOUND
    location = response.headers["location"]
    return parse_qs(urlparse(location).query)["state"][0]


class TestGoogleSignIn:
    """OAuth redirect, state check and callback handling."""

    def test_login_redirects_to_provider_with_state(self, test_client):
        response = test_client.get("/api/auth/google", follow_redirects=False)

        assert response.status_code == status.HTTP_302_FOUND
        location = response.headers["location"]
        assert location.startswith("https://accounts.example.test/auth")
        state = parse_qs(urlparse(location).query)["state"][0]
        assert len(state) == 64

    def test_callback_creates_user_and_sets_cookie(self, test_client, fake_oauth):
        fake_oauth.identities["good-code"] = IdentityAssertion(
            provider_id="g-100", email="new@example.com", name="New User", picture="https://img.test/a.png"
        )
        state = _start_login(test_client)

        response = test_client.get(
            "/api/auth/google/callback",
            params={"state": state, "code": "good-code"},
            follow_redirects=False,
        )

        assert response.status_code == status.HTTP_302_FOUND
        assert response.headers["location"] == "http://dashboard.test/auth-success"
        cookie_header = response.headers["set-cookie"]
        assert "auth_token=" in cookie_header
        assert "HttpOnly" in cookie_header
        assert "SameSite=lax" in cookie_header
        assert "Max-Age=604800" in cookie_header

        me = test_client.get("/api/auth/me")
        assert me.status_code == status.HTTP_200_OK
        data = me.json()["data"]
        assert data["email"] == "new@example.com"
        assert data["name"] == "New User"

    def test_repeat_sign_in_refreshes_profile(self, test_client, fake_oauth):
        fake_oauth.identities["first"] = IdentityAssertion(provider_id="g-7", email="a@example.com", name="Old Name")
        fake_oauth.identities["second"] = IdentityAssertion(provider_id="g-7", email="a@example.com", name="New Name")

        for code in ("first", "second"):
            state = _start_login(test_client)
            response = test_client.get(
                "/api/auth/google/callback", params={"state": state, "code": code}, follow_redirects=False
            )
            assert response.headers["location"].endswith("/auth-success")

        me = test_client.get("/api/auth/me").json()["data"]
        assert me["name"] == "New Name"

    def test_callback_with_wrong_state_is_rejected(self, test_client, fake_oauth):
        fake_oauth.identities["good-code"] = IdentityAssertion(provider_id="g-1", email="x@example.com", name="X")
        _start_login(test_client)

        response = test_client.get(
            "/api/auth/google/callback",
            params={"state": "0" * 64, "code": "good-code"},
            follow_redirects=False,
        )

        assert response.status_code == status.HTTP_302_FOUND
        assert response.headers["location"] == "http://dashboard.test/login?error=invalid_state"
        assert fake_oauth.exchanged_codes == []

    def test_callback_without_prior_login_is_rejected(self, test_client, fake_oauth):
        response = test_client.get(
            "/api/auth/google/callback",
            params={"state": "abc", "code": "good-code"},
            follow_redirects=False,
        )

        assert response.headers["location"].endswith("/login?error=invalid_state")

    def test_state_is_single_use(self, test_client, fake_oauth):
        fake_oauth.identities["good-code"] = IdentityAssertion(provider_id="g-1", email="x@example.com", name="X")
        state = _start_login(test_client)

        first = test_client.get(
            "/api/auth/google/callback", params={"state": state, "code": "good-code"}, follow_redirects=False
        )
        replay = test_client.get(
            "/api/auth/google/callback", params={"state": state, "code": "good-code"}, follow_redirects=False
        )

        assert first.headers["location"].endswith("/auth-success")
        assert replay.headers["location"].endswith("/login?error=invalid_state")

    def test_failed_code_exchange_redirects_with_auth_failed(self, test_client, fake_oauth):
        state = _start_login(test_client)

        response = test_client.get(
            "/api/auth/google/callback", params={"state": state, "code": "bad-code"}, follow_redirects=False
        )

        assert response.headers["location"] == "http://dashboard.test/login?error=auth_failed"
        assert "auth_token=" not in response.headers.get("set-cookie", "")

    def test_provider_error_redirects_with_auth_failed(self, test_client):
        state = _start_login(test_client)

        response = test_client.get(
            "/api/auth/google/callback", params={"state": state, "error": "access_denied"}, follow_redirects=False
        )

        assert response.headers["location"].endswith("/login?error=auth_failed")


class TestCredentialResolution:
    """Cookie first, bearer second, no fallthrough."""

    def test_bearer_token_authenticates(self, test_client, auth_headers, test_user):
        response = test_client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["id"] == test_user.id
        assert data["created_at"].endswith(("Z", "+00:00"))
        assert data["updated_at"].endswith(("Z", "+00:00"))

    def test_cookie_authenticates(self, test_client, test_user, token_for):
        response = test_client.get("/api/auth/me", headers={"Cookie": f"auth_token={token_for(test_user)}"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["email"] == "test@example.com"

    def test_missing_token(self, test_client):
        response = test_client.get("/api/auth/me")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        body = response.json()
        assert body == {"success": False, "error": "No authentication token, access denied"}
        assert response.headers["www-authenticate"] == "Bearer"

    def test_tampered_token(self, test_client, test_user, token_for):
        token = _tamper(token_for(test_user))

        response = test_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "Token is not valid"

    def test_expired_token(self, test_client, test_app, test_user):
        issued = test_app.state.token_service.create_access_token(test_user.id, expires_delta=timedelta(seconds=-10))

        response = test_client.get("/api/auth/me", headers={"Authorization": f"Bearer {issued.token}"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "Token expired"

    def test_token_for_deleted_user(self, test_client, test_app):
        token = test_app.state.token_service.create_access_token(9999).token

        response = test_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "User not found"

    def test_cookie_wins_over_bearer(self, test_client, make_user, token_for):
        cookie_user = make_user(email="cookie@example.com")
        bearer_user = make_user(email="bearer@example.com")

        response = test_client.get(
            "/api/auth/me",
            headers={
                "Cookie": f"auth_token={token_for(cookie_user)}",
                "Authorization": f"Bearer {token_for(bearer_user)}",
            },
        )

        assert response.json()["data"]["email"] == "cookie@example.com"

    def test_invalid_cookie_does_not_fall_through_to_bearer(self, test_client, test_user, token_for):
        valid = token_for(test_user)

        response = test_client.get(
            "/api/auth/me",
            headers={"Cookie": f"auth_token={_tamper(valid)}", "Authorization": f"Bearer {valid}"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.parametrize("header", ["Basic abc123", "Bearer", "Token abc"])
    def test_malformed_authorization_header(self, test_client, header):
        response = test_client.get("/api/auth/me", headers={"Authorization": header})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "No authentication token, access denied"


class TestTokenHandoffAndLogout:
    def test_token_endpoint_returns_session_credential(self, test_client, test_user, token_for):
        token = token_for(test_user)

        response = test_client.get("/api/auth/token", headers={"Cookie": f"auth_token={token}"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["token"] == token
        assert data["token_type"] == "bearer"
        assert "expires_at" in data

    def test_token_endpoint_requires_authentication(self, test_client):
        response = test_client.get("/api/auth/token")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout_clears_cookie(self, test_client):
        response = test_client.post("/api/auth/logout")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True, "message": "Logged out successfully"}
        cookie_header = response.headers["set-cookie"]
        assert "auth_token=" in cookie_header
        assert "Max-Age=0" in cookie_header

    def test_token_still_valid_after_logout(self, test_client, auth_headers):
        test_client.post("/api/auth/logout", headers=auth_headers)

        # No server-side revocation: the credential lives until it expires
        response = test_client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
