"""Tests for the Google OAuth client."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from authgate.config import Settings
from authgate.infrastructure.oauth.google_client import (
    GoogleOAuthClient,
    OAuthExchangeError,
    OAuthUserInfoError,
)


@pytest.fixture
def google_client():
    settings = Settings(
        app_url="https://app.example.com",
        google_client_id="client-id",
        google_client_secret="client-secret",
        jwt_access_secret="a-secret",
        jwt_refresh_secret="r-secret",
    )
    return GoogleOAuthClient.from_settings(settings)


@pytest.fixture
def mock_transport(monkeypatch):
    """Route every httpx.AsyncClient through a handler set by the test."""
    real_async_client = httpx.AsyncClient

    def install(handler):
        def client_factory(*args, **kwargs):
            kwargs["transport"] = httpx.MockTransport(handler)
            return real_async_client(*args, **kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", client_factory)

    return install


class TestAuthorizationUrl:
    def test_consent_screen_parameters(self, google_client):
        url = urlparse(google_client.authorization_url())
        params = parse_qs(url.query)

        assert url.netloc == "accounts.google.com"
        assert params["client_id"] == ["client-id"]
        assert params["redirect_uri"] == ["https://app.example.com/api/v1/auth/google"]
        assert params["response_type"] == ["code"]
        assert params["scope"] == ["openid email profile"]
        assert params["access_type"] == ["offline"]
        assert params["prompt"] == ["consent"]


class TestExchangeCode:
    """Test cases for the authorization code exchange."""

    @pytest.mark.asyncio
    async def test_success(self, google_client, mock_transport):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = parse_qs(request.content.decode())
            return httpx.Response(200, json={"access_token": "google-token"})

        mock_transport(handler)

        assert await google_client.exchange_code("auth-code") == "google-token"
        assert seen["body"]["code"] == ["auth-code"]
        assert seen["body"]["grant_type"] == ["authorization_code"]

    @pytest.mark.asyncio
    async def test_rejected_code(self, google_client, mock_transport):
        mock_transport(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))

        with pytest.raises(OAuthExchangeError):
            await google_client.exchange_code("bad-code")

    @pytest.mark.asyncio
    async def test_missing_access_token(self, google_client, mock_transport):
        mock_transport(lambda request: httpx.Response(200, json={"token_type": "Bearer"}))

        with pytest.raises(OAuthExchangeError):
            await google_client.exchange_code("auth-code")

    @pytest.mark.asyncio
    async def test_transport_error(self, google_client, mock_transport):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        mock_transport(handler)

        with pytest.raises(OAuthExchangeError):
            await google_client.exchange_code("auth-code")


class TestFetchUserInfo:
    """Test cases for the profile lookup."""

    @pytest.mark.asyncio
    async def test_success(self, google_client, mock_transport):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer google-token"
            return httpx.Response(
                200,
                json={
                    "id": 1234567890,
                    "email": "g@x.com",
                    "name": "G User",
                    "picture": "https://example.com/g.jpg",
                },
            )

        mock_transport(handler)

        profile = await google_client.fetch_user_info("google-token")

        assert profile.provider == "google"
        assert profile.provider_id == "1234567890"
        assert profile.email == "g@x.com"
        assert profile.picture == "https://example.com/g.jpg"

    @pytest.mark.asyncio
    async def test_profile_without_email(self, google_client, mock_transport):
        mock_transport(lambda request: httpx.Response(200, json={"id": "42"}))

        profile = await google_client.fetch_user_info("google-token")

        assert profile.email is None

    @pytest.mark.asyncio
    async def test_rejected_token(self, google_client, mock_transport):
        mock_transport(lambda request: httpx.Response(401))

        with pytest.raises(OAuthUserInfoError):
            await google_client.fetch_user_info("expired-token")
