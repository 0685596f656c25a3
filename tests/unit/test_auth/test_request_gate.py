"""Tests for the edge request gate."""

import pytest

from authgate.api.gate import GateAction, RequestGate, extract_bearer_token
from authgate.config import Settings

REFRESH_COOKIE = "some.refresh.token"


@pytest.fixture
def gate(token_codec):
    settings = Settings(jwt_access_secret="a-secret", jwt_refresh_secret="r-secret")
    return RequestGate.from_settings(settings, token_codec)


@pytest.fixture
def bearer(token_codec):
    return f"Bearer {token_codec.issue_access_token(7, 'a@x.com')}"


class TestExtractBearerToken:
    """Test cases for Authorization header parsing."""

    def test_bearer(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize("header", [None, "", "Basic dXNlcjpwYXNz", "Bearer ", "bearer abc"])
    def test_not_bearer(self, header):
        assert extract_bearer_token(header) is None


class TestPublicPaths:
    """Test cases for the public allow-list."""

    @pytest.mark.parametrize(
        "path",
        [
            "/",
            "/landing",
            "/auth/signin",
            "/auth/signup",
            "/health",
            "/docs",
            "/api/v1/health/ready",
            "/api/v1/auth/signin",
            "/api/v1/auth/signup",
            "/api/v1/auth/google",
            "/api/v1/auth/refresh",
            "/api/v1/auth/logout",
        ],
    )
    def test_public_paths_allowed(self, gate, path):
        decision = gate.classify(path, None, None)

        assert decision.action == GateAction.ALLOW

    def test_root_is_public_only_as_exact_match(self, gate):
        assert gate.is_public("/") is True
        assert gate.is_public("/something") is False
        assert gate.is_public("/dashboard") is False


class TestApiRoutes:
    """Test cases for protected API routes."""

    def test_missing_token_rejected(self, gate):
        decision = gate.classify("/api/v1/auth/me", None, None)

        assert decision.action == GateAction.REJECT
        assert decision.message == "Authentication required"

    def test_missing_token_rejected_even_with_refresh_cookie(self, gate):
        decision = gate.classify("/api/v1/auth/me", None, REFRESH_COOKIE)

        assert decision.action == GateAction.REJECT

    def test_invalid_token_rejected(self, gate):
        decision = gate.classify("/api/v1/auth/me", "Bearer not-a-jwt", None)

        assert decision.action == GateAction.REJECT
        assert decision.message == "Invalid or expired token"

    def test_invalid_token_with_refresh_cookie_passes(self, gate):
        decision = gate.classify("/api/v1/auth/me", "Bearer not-a-jwt", REFRESH_COOKIE)

        assert decision.action == GateAction.ALLOW

    def test_refresh_token_is_not_an_access_token(self, gate, token_codec):
        refresh = token_codec.issue_refresh_token(7, "a@x.com")

        decision = gate.classify("/api/v1/auth/me", f"Bearer {refresh}", None)

        assert decision.action == GateAction.REJECT

    def test_valid_token_forwards_identity(self, gate, bearer):
        decision = gate.classify("/api/v1/auth/me", bearer, None)

        assert decision.action == GateAction.FORWARD_AUTHENTICATED
        assert decision.user_id == 7
        assert decision.email == "a@x.com"


class TestPageRoutes:
    """Test cases for protected and unprotected pages."""

    def test_unprotected_page_allowed(self, gate):
        assert gate.classify("/about", None, None).action == GateAction.ALLOW

    def test_protected_page_redirects_to_signin(self, gate):
        decision = gate.classify("/dashboard", None, None)

        assert decision.action == GateAction.REDIRECT
        assert decision.location == "/auth/signin"

    def test_protected_page_with_refresh_cookie_allowed(self, gate):
        assert gate.classify("/dashboard/settings", None, REFRESH_COOKIE).action == GateAction.ALLOW

    def test_invalid_token_redirects_with_error(self, gate):
        decision = gate.classify("/components/table", "Bearer not-a-jwt", None)

        assert decision.action == GateAction.REDIRECT
        assert decision.location == "/auth/signin?error=invalid_token"

    def test_invalid_token_with_refresh_cookie_allowed(self, gate):
        decision = gate.classify("/dashboard", "Bearer not-a-jwt", REFRESH_COOKIE)

        assert decision.action == GateAction.ALLOW

    def test_valid_token_forwards_identity(self, gate, bearer):
        decision = gate.classify("/dashboard", bearer, None)

        assert decision.action == GateAction.FORWARD_AUTHENTICATED
        assert decision.user_id == 7
