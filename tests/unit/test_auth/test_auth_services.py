"""Tests for authentication services."""

import pytest
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

from authgate.core.auth.entities import LockoutStatus, OAuthProfile, TokenPair, User
from authgate.core.auth.services import AuthenticationService, PasswordService
from authgate.core.exceptions import (
    AccountLockedException,
    InvalidCredentialsException,
    InvalidTokenException,
    UserAlreadyExistsException,
    UserNotFoundException,
)


@pytest.fixture
def mock_user():
    """Create mock user."""
    return User(
        id=1,
        username="ann",
        email="a@x.com",
        hashed_password="$2b$12$hashed_password",
        provider="credentials",
    )


@pytest.fixture
def token_pair():
    return TokenPair(access_token="access.jwt.token", refresh_token="refresh.jwt.token")


@pytest.fixture
def mock_user_repository():
    """Create mock user repository."""
    return AsyncMock()


@pytest.fixture
def mock_password_service():
    service = MagicMock()
    service.hash_password.return_value = "$2b$12$new_hash"
    service.verify_password.return_value = True
    return service


@pytest.fixture
def mock_rotation_engine(token_pair):
    engine = AsyncMock()
    engine.issue.return_value = token_pair
    return engine


@pytest.fixture
def mock_revocation_registry():
    registry = AsyncMock()
    registry.is_token_blacklisted.return_value = False
    return registry


@pytest.fixture
def mock_lockout_guard():
    guard = AsyncMock()
    guard.is_locked.return_value = False
    return guard


@pytest.fixture
def auth_service(
    mock_user_repository,
    mock_password_service,
    token_codec,
    mock_rotation_engine,
    mock_revocation_registry,
    mock_lockout_guard,
):
    """Create authentication service with mocked dependencies."""
    return AuthenticationService(
        user_repository=mock_user_repository,
        password_service=mock_password_service,
        token_codec=token_codec,
        rotation_engine=mock_rotation_engine,
        revocation_registry=mock_revocation_registry,
        lockout_guard=mock_lockout_guard,
    )


class TestPasswordService:
    """Test cases for PasswordService."""

    def test_hash_and_verify(self):
        password_service = PasswordService()
        hashed = password_service.hash_password("longenough1")

        assert hashed != "longenough1"
        assert hashed.startswith("$2b$")
        assert password_service.verify_password("longenough1", hashed) is True
        assert password_service.verify_password("wrong-password", hashed) is False


class TestSignUp:
    """Test cases for AuthenticationService.sign_up."""

    @pytest.mark.asyncio
    async def test_sign_up_success(self, auth_service, mock_user_repository, mock_rotation_engine, mock_user, token_pair):
        mock_user_repository.find_by_email_or_username.return_value = None
        mock_user_repository.create_user.return_value = mock_user

        session = await auth_service.sign_up("Ann", "A@X.com", "longenough1")

        assert session.user == mock_user
        assert session.tokens == token_pair
        mock_user_repository.find_by_email_or_username.assert_called_once_with("a@x.com", "ann")
        created = mock_user_repository.create_user.call_args[0][0]
        assert created.email == "a@x.com"
        assert created.username == "ann"
        assert created.provider == "credentials"
        assert created.email_verified is False
        assert created.hashed_password == "$2b$12$new_hash"
        mock_rotation_engine.issue.assert_called_once_with(mock_user.id, mock_user.email)

    @pytest.mark.asyncio
    async def test_sign_up_duplicate(self, auth_service, mock_user_repository, mock_user):
        mock_user_repository.find_by_email_or_username.return_value = mock_user

        with pytest.raises(UserAlreadyExistsException):
            await auth_service.sign_up("ann", "a@x.com", "longenough1")

        mock_user_repository.create_user.assert_not_called()


class TestSignIn:
    """Test cases for AuthenticationService.sign_in."""

    @pytest.mark.asyncio
    async def test_sign_in_success_resets_lockout(self, auth_service, mock_user_repository, mock_lockout_guard, mock_user):
        mock_user_repository.get_user_by_email.return_value = mock_user

        session = await auth_service.sign_in("A@x.com", "longenough1")

        assert session.user == mock_user
        mock_user_repository.get_user_by_email.assert_called_once_with("a@x.com")
        mock_lockout_guard.reset.assert_called_once_with(mock_user.id)

    @pytest.mark.asyncio
    async def test_unknown_email_is_generic_failure(self, auth_service, mock_user_repository, mock_lockout_guard):
        mock_user_repository.get_user_by_email.return_value = None

        with pytest.raises(InvalidCredentialsException) as exc_info:
            await auth_service.sign_in("nobody@x.com", "whatever")

        assert exc_info.value.message == "Invalid email or password"
        mock_lockout_guard.record_failed_attempt.assert_not_called()

    @pytest.mark.asyncio
    async def test_oauth_only_account_is_generic_failure(self, auth_service, mock_user_repository):
        mock_user_repository.get_user_by_email.return_value = User(
            id=2, username="bob", email="b@x.com", provider="google", provider_id="g-1"
        )

        with pytest.raises(InvalidCredentialsException) as exc_info:
            await auth_service.sign_in("b@x.com", "whatever")

        assert exc_info.value.message == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_wrong_password_records_attempt(
        self, auth_service, mock_user_repository, mock_password_service, mock_lockout_guard, mock_user
    ):
        mock_user_repository.get_user_by_email.return_value = mock_user
        mock_password_service.verify_password.return_value = False
        mock_lockout_guard.record_failed_attempt.return_value = LockoutStatus(locked=False, attempts_remaining=3)

        with pytest.raises(InvalidCredentialsException):
            await auth_service.sign_in("a@x.com", "wrong")

        mock_lockout_guard.record_failed_attempt.assert_called_once_with(mock_user.id)

    @pytest.mark.asyncio
    async def test_failure_that_locks_raises_locked(
        self, auth_service, mock_user_repository, mock_password_service, mock_lockout_guard, mock_user
    ):
        locked_until = datetime(2026, 1, 1, 12, 15, 0)
        mock_user_repository.get_user_by_email.return_value = mock_user
        mock_password_service.verify_password.return_value = False
        mock_lockout_guard.record_failed_attempt.return_value = LockoutStatus(
            locked=True, attempts_remaining=0, locked_until=locked_until
        )

        with pytest.raises(AccountLockedException) as exc_info:
            await auth_service.sign_in("a@x.com", "wrong")

        assert exc_info.value.locked_until == locked_until

    @pytest.mark.asyncio
    async def test_locked_account_rejected_before_password_check(
        self, auth_service, mock_user_repository, mock_password_service, mock_lockout_guard, mock_user
    ):
        mock_user_repository.get_user_by_email.return_value = mock_user
        mock_lockout_guard.is_locked.return_value = True

        with pytest.raises(AccountLockedException):
            await auth_service.sign_in("a@x.com", "longenough1")

        mock_password_service.verify_password.assert_not_called()


class TestRefresh:
    """Test cases for AuthenticationService.refresh."""

    @pytest.mark.asyncio
    async def test_refresh_success(self, auth_service, mock_rotation_engine, token_pair):
        mock_rotation_engine.rotate.return_value = token_pair

        assert await auth_service.refresh("old.refresh.token") == token_pair
        mock_rotation_engine.rotate.assert_called_once_with("old.refresh.token")

    @pytest.mark.asyncio
    async def test_missing_token(self, auth_service):
        with pytest.raises(InvalidTokenException, match="Refresh token not found"):
            await auth_service.refresh(None)

    @pytest.mark.asyncio
    async def test_blacklisted_token(self, auth_service, mock_revocation_registry, mock_rotation_engine):
        mock_revocation_registry.is_token_blacklisted.return_value = True

        with pytest.raises(InvalidTokenException, match="revoked"):
            await auth_service.refresh("old.refresh.token")

        mock_rotation_engine.rotate.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_rotation(self, auth_service, mock_rotation_engine):
        mock_rotation_engine.rotate.return_value = None

        with pytest.raises(InvalidTokenException):
            await auth_service.refresh("old.refresh.token")


class TestLogout:
    """Test cases for AuthenticationService.logout."""

    @pytest.mark.asyncio
    async def test_logout_revokes_and_blacklists(
        self, auth_service, token_codec, mock_rotation_engine, mock_revocation_registry
    ):
        access = token_codec.issue_access_token(1, "a@x.com")

        await auth_service.logout(access, "refresh.jwt.token")

        mock_rotation_engine.revoke.assert_called_once_with("refresh.jwt.token")
        mock_revocation_registry.blacklist_token.assert_called_once_with(access)

    @pytest.mark.asyncio
    async def test_invalid_access_token_not_blacklisted(self, auth_service, mock_revocation_registry):
        await auth_service.logout("garbage", None)

        mock_revocation_registry.blacklist_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_logout_without_credentials(self, auth_service, mock_rotation_engine, mock_revocation_registry):
        await auth_service.logout(None, None)

        mock_rotation_engine.revoke.assert_not_called()
        mock_revocation_registry.blacklist_token.assert_not_called()


class TestGetCurrentUser:
    """Test cases for AuthenticationService.get_current_user."""

    @pytest.mark.asyncio
    async def test_valid_token(self, auth_service, token_codec, mock_user_repository, mock_user):
        mock_user_repository.get_user_by_id.return_value = mock_user

        user = await auth_service.get_current_user(token_codec.issue_access_token(1, "a@x.com"))

        assert user == mock_user
        mock_user_repository.get_user_by_id.assert_called_once_with(1)

    @pytest.mark.asyncio
    async def test_blacklisted_token(self, auth_service, token_codec, mock_revocation_registry):
        mock_revocation_registry.is_token_blacklisted.return_value = True

        with pytest.raises(InvalidTokenException, match="revoked"):
            await auth_service.get_current_user(token_codec.issue_access_token(1, "a@x.com"))

    @pytest.mark.asyncio
    async def test_refresh_token_rejected(self, auth_service, token_codec):
        with pytest.raises(InvalidTokenException):
            await auth_service.get_current_user(token_codec.issue_refresh_token(1, "a@x.com"))

    @pytest.mark.asyncio
    async def test_missing_token(self, auth_service):
        with pytest.raises(InvalidTokenException, match="Authentication required"):
            await auth_service.get_current_user(None)

    @pytest.mark.asyncio
    async def test_deleted_user(self, auth_service, token_codec, mock_user_repository):
        mock_user_repository.get_user_by_id.return_value = None

        with pytest.raises(UserNotFoundException):
            await auth_service.get_current_user(token_codec.issue_access_token(1, "a@x.com"))


class TestOAuthSignIn:
    """Test cases for AuthenticationService.oauth_sign_in."""

    @pytest.fixture
    def profile(self):
        return OAuthProfile(
            provider="google",
            provider_id="g-123",
            email="New.User@Example.com",
            name="New User",
            picture="https://example.com/p.jpg",
        )

    @pytest.mark.asyncio
    async def test_creates_new_user(self, auth_service, mock_user_repository, profile):
        mock_user_repository.find_by_email_or_provider.return_value = None
        mock_user_repository.create_user.side_effect = lambda user: User(
            id=5,
            username=user.username,
            email=user.email,
            provider=user.provider,
            provider_id=user.provider_id,
            email_verified=user.email_verified,
            image=user.image,
        )

        session = await auth_service.oauth_sign_in(profile)

        mock_user_repository.find_by_email_or_provider.assert_called_once_with(
            "new.user@example.com", "google", "g-123"
        )
        created = session.user
        assert created.email == "new.user@example.com"
        assert created.provider == "google"
        assert created.provider_id == "g-123"
        assert created.email_verified is True
        assert created.hashed_password is None
        assert created.image == "https://example.com/p.jpg"
        assert created.username.startswith("new.user")
        assert len(created.username) <= 30

    @pytest.mark.asyncio
    async def test_links_existing_credentials_account(self, auth_service, mock_user_repository, mock_user, profile):
        linked = User(id=1, username="ann", email="a@x.com", provider="google", provider_id="g-123")
        mock_user_repository.find_by_email_or_provider.return_value = mock_user
        mock_user_repository.update_user.return_value = linked

        session = await auth_service.oauth_sign_in(profile)

        assert session.user == linked
        mock_user_repository.update_user.assert_called_once_with(
            mock_user.id,
            provider="google",
            provider_id="g-123",
            email_verified=True,
            image="https://example.com/p.jpg",
        )

    @pytest.mark.asyncio
    async def test_already_linked_account_unchanged(self, auth_service, mock_user_repository, profile):
        existing = User(id=3, username="nu", email="new.user@example.com", provider="google", provider_id="g-123")
        mock_user_repository.find_by_email_or_provider.return_value = existing

        session = await auth_service.oauth_sign_in(profile)

        assert session.user == existing
        mock_user_repository.update_user.assert_not_called()
        mock_user_repository.create_user.assert_not_called()

    def test_generated_username_fits(self):
        username = AuthenticationService._generate_username("a" * 64 + "@x.com")

        assert len(username) == 30
