"""
Google OAuth 2.0 authorization-code client.

Builds the consent screen URL, exchanges the authorization code for a Google
access token and reads the user profile. Only the fields needed to create or
link an account are kept.
"""

import logging
from urllib.parse import urlencode

import httpx

from authgate.config import Settings
from authgate.core.auth.entities import OAuthProfile

logger = logging.getLogger("authgate.oauth")

GOOGLE_PROVIDER = "google"


class OAuthError(Exception):
    """Base error for OAuth provider failures."""


class OAuthExchangeError(OAuthError):
    """Raised when the authorization code cannot be exchanged."""


class OAuthUserInfoError(OAuthError):
    """Raised when the user profile cannot be fetched."""


class GoogleOAuthClient:
    """Async client for the Google OAuth endpoints."""

    AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
    SCOPE = "openid email profile"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = 30.0,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleOAuthClient":
        return cls(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            redirect_uri=settings.oauth_redirect_uri,
        )

    def authorization_url(self) -> str:
        """URL of the Google consent screen for this application."""
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": self.SCOPE,
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{self.AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> str:
        """
        Exchange an authorization code for a Google access token.

        Raises:
            OAuthExchangeError: On transport errors, non-2xx responses or a
                response without an access token
        """
        token_data = {
            "code": code,
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "redirect_uri": self._redirect_uri,
            "grant_type": "authorization_code",
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=False) as client:
                response = await client.post(
                    self.TOKEN_URL,
                    data=token_data,
                    headers={"Accept": "application/json"},
                )
                response.raise_for_status()
                access_token = response.json().get("access_token")
        except httpx.HTTPStatusError as e:
            logger.error(f"OAuth code exchange failed with status {e.response.status_code}")
            raise OAuthExchangeError("Code exchange rejected") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"OAuth code exchange failed: {e}")
            raise OAuthExchangeError("Code exchange failed") from e

        if not access_token:
            raise OAuthExchangeError("No access token in provider response")
        return access_token

    async def fetch_user_info(self, access_token: str) -> OAuthProfile:
        """
        Read the Google profile of the token owner.

        Raises:
            OAuthUserInfoError: On transport errors or non-2xx responses
        """
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(
                    self.USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                response.raise_for_status()
                userinfo = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"OAuth userinfo failed with status {e.response.status_code}")
            raise OAuthUserInfoError("Userinfo request rejected") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"OAuth userinfo failed: {e}")
            raise OAuthUserInfoError("Userinfo request failed") from e

        return OAuthProfile(
            provider=GOOGLE_PROVIDER,
            provider_id=str(userinfo.get("id", "")),
            email=userinfo.get("email"),
            name=userinfo.get("name"),
            picture=userinfo.get("picture"),
        )
