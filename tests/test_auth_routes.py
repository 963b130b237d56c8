"""Tests for web auth routes module."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from podcast_hub.web.auth import SESSION_COOKIE, verify_token


def oauth_returning(userinfo):
    mock_oauth = MagicMock()
    mock_oauth.google.authorize_access_token = AsyncMock(return_value={"userinfo": userinfo})
    return mock_oauth


class TestLoginRoute:
    """Tests for /auth/login endpoint."""

    def test_login_missing_oauth_config(self, client, config):
        config.GOOGLE_CLIENT_ID = ""

        response = client.get("/auth/login")

        assert response.status_code == 500
        assert "OAuth not configured" in response.json()["detail"]


class TestCallbackRoute:
    """Tests for /auth/callback endpoint."""

    @patch("podcast_hub.web.auth_routes.get_oauth")
    def test_callback_creates_profile(self, mock_get_oauth, client, repository, config):
        mock_get_oauth.return_value = oauth_returning({
            "sub": "google-new",
            "email": "new.listener@example.com",
            "picture": "https://example.com/pic.jpg",
        })

        response = client.get("/auth/callback", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        profile = repository.get_profile_by_google_id("google-new")
        assert profile.username == "new.listener"
        assert profile.avatar_url == "https://example.com/pic.jpg"

        payload = verify_token(response.cookies[SESSION_COOKIE], config)
        assert payload["sub"] == profile.id
        assert payload["username"] == "new.listener"

    @patch("podcast_hub.web.auth_routes.get_oauth")
    def test_callback_reuses_existing_profile(self, mock_get_oauth, client, repository, config, user):
        mock_get_oauth.return_value = oauth_returning({
            "sub": "google-alice",
            "email": "alice@example.com",
            "picture": "https://example.com/new-pic.jpg",
        })

        response = client.get("/auth/callback", follow_redirects=False)

        assert response.status_code == 302
        assert repository.get_profile(user.id).avatar_url == "https://example.com/new-pic.jpg"
        assert verify_token(response.cookies[SESSION_COOKIE], config)["sub"] == user.id

    @patch("podcast_hub.web.auth_routes.get_oauth")
    def test_callback_oauth_error(self, mock_get_oauth, client):
        mock_oauth = MagicMock()
        mock_oauth.google.authorize_access_token = AsyncMock(side_effect=Exception("bad state"))
        mock_get_oauth.return_value = mock_oauth

        response = client.get("/auth/callback", follow_redirects=False)

        assert response.status_code == 400
        assert response.json()["detail"] == "Authentication failed"

    @pytest.mark.parametrize("userinfo", [{"email": "x@example.com"}, {"sub": "google-x"}])
    @patch("podcast_hub.web.auth_routes.get_oauth")
    def test_callback_missing_required_info(self, mock_get_oauth, userinfo, client):
        mock_get_oauth.return_value = oauth_returning(userinfo)

        response = client.get("/auth/callback", follow_redirects=False)

        assert response.status_code == 400


class TestLogoutAndMe:
    """Tests for /auth/logout and /auth/me."""

    def test_logout_redirects_to_login(self, auth_client):
        response = auth_client.get("/auth/logout", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "/login"
        assert SESSION_COOKIE in response.headers["set-cookie"]

    def test_me_requires_session(self, client):
        assert client.get("/auth/me").status_code == 401

    def test_me_reads_profile(self, auth_client, repository, user):
        repository.update_profile(user.id, is_creator=True)

        data = auth_client.get("/auth/me").json()

        assert data["id"] == user.id
        assert data["username"] == "alice"
        assert data["is_creator"] is True

    def test_me_with_invalid_cookie(self, client):
        client.cookies.set(SESSION_COOKIE, "tampered")

        assert client.get("/auth/me").status_code == 401
