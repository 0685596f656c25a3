"""Edge request classifier for public and protected routes."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from authgate.config import Settings
from authgate.core.auth.token_codec import TokenCodec

USER_ID_HEADER = "x-user-id"
USER_EMAIL_HEADER = "x-user-email"
TRUSTED_HEADERS = (USER_ID_HEADER, USER_EMAIL_HEADER)

API_ROOT = "/api/"
PROTECTED_PAGE_PREFIXES = ("/dashboard", "/components")


class GateAction(str, Enum):
    """What the edge does with a request."""

    ALLOW = "allow"
    FORWARD_AUTHENTICATED = "forward_authenticated"
    REJECT = "reject"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GateDecision:
    """
    Result of classifying one request.

    Attributes:
        action: What to do with the request
        user_id: Verified user ID when forwarding authenticated
        email: Verified email when forwarding authenticated
        message: Error message when rejecting
        location: Path and query to redirect to
    """

    action: GateAction
    user_id: Optional[int] = None
    email: Optional[str] = None
    message: Optional[str] = None
    location: Optional[str] = None


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token of a ``Bearer`` Authorization header, if any."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


class RequestGate:
    """
    Stateless classifier run before any handler.

    It only checks token signature, expiry and kind. It never touches the
    store, so blacklisted tokens pass here and are rejected by the handlers.
    """

    def __init__(
        self,
        token_codec: TokenCodec,
        public_prefixes: Sequence[str],
        protected_page_prefixes: Sequence[str] = PROTECTED_PAGE_PREFIXES,
        signin_path: str = "/auth/signin",
    ) -> None:
        """
        Initialize request gate.

        Args:
            token_codec: Codec used to verify access tokens
            public_prefixes: Path prefixes that bypass authentication
            protected_page_prefixes: Page prefixes that need credentials
            signin_path: Redirect target for unauthenticated page requests
        """
        self._token_codec = token_codec
        self._public_prefixes = tuple(public_prefixes)
        self._protected_page_prefixes = tuple(protected_page_prefixes)
        self._signin_path = signin_path

    @classmethod
    def from_settings(cls, settings: Settings, token_codec: TokenCodec) -> "RequestGate":
        api_auth = f"{settings.api_prefix}/auth"
        public_prefixes = (
            "/landing",
            settings.signin_path,
            "/auth/signup",
            "/health",
            "/docs",
            "/redoc",
            "/openapi.json",
            f"{settings.api_prefix}/health",
            f"{api_auth}/signin",
            f"{api_auth}/signup",
            f"{api_auth}/google",
            f"{api_auth}/refresh",
            f"{api_auth}/logout",
        )
        return cls(token_codec, public_prefixes, signin_path=settings.signin_path)

    def is_public(self, path: str) -> bool:
        """The landing page and the allow-listed prefixes skip authentication."""
        return path == "/" or path.startswith(self._public_prefixes)

    def classify(
        self,
        path: str,
        authorization: Optional[str],
        refresh_cookie: Optional[str],
    ) -> GateDecision:
        """
        Decide how to handle a request.

        Args:
            path: Request path
            authorization: Raw Authorization header
            refresh_cookie: Refresh token cookie value

        Returns:
            Gate decision
        """
        if self.is_public(path):
            return GateDecision(GateAction.ALLOW)

        token = extract_bearer_token(authorization)

        if path.startswith(API_ROOT):
            if token is None:
                return GateDecision(GateAction.REJECT, message="Authentication required")

            payload = self._token_codec.verify_access_token(token)
            if payload is None:
                # the handler is expected to attempt a refresh
                if refresh_cookie:
                    return GateDecision(GateAction.ALLOW)
                return GateDecision(GateAction.REJECT, message="Invalid or expired token")

            return GateDecision(
                GateAction.FORWARD_AUTHENTICATED,
                user_id=payload.user_id,
                email=payload.email,
            )

        if not path.startswith(self._protected_page_prefixes):
            return GateDecision(GateAction.ALLOW)

        if token is None:
            if refresh_cookie:
                return GateDecision(GateAction.ALLOW)
            return GateDecision(GateAction.REDIRECT, location=self._signin_path)

        payload = self._token_codec.verify_access_token(token)
        if payload is None:
            if refresh_cookie:
                return GateDecision(GateAction.ALLOW)
            return GateDecision(GateAction.REDIRECT, location=f"{self._signin_path}?error=invalid_token")

        return GateDecision(
            GateAction.FORWARD_AUTHENTICATED,
            user_id=payload.user_id,
            email=payload.email,
        )
