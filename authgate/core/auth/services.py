"""Authentication service implementations."""

import logging
import secrets
from typing import Optional

from passlib.context import CryptContext

from authgate.core.exceptions import (
    AccountLockedException,
    InvalidCredentialsException,
    InvalidTokenException,
    UserAlreadyExistsException,
    UserNotFoundException,
)
from .entities import AuthSession, OAuthProfile, TokenPair, User
from .interfaces import PasswordServiceInterface, UserRepositoryInterface
from .lockout import AccountLockoutGuard
from .revocation import RevocationRegistry
from .rotation import RefreshRotationEngine
from .token_codec import TokenCodec

logger = logging.getLogger("authgate.auth")

CREDENTIALS_PROVIDER = "credentials"
USERNAME_MAX_LENGTH = 30


class PasswordService(PasswordServiceInterface):
    """
    BCrypt-based password hashing service.

    Provides secure password hashing and verification using bcrypt algorithm.
    """

    def __init__(self) -> None:
        """Initialize password context with bcrypt."""
        self._pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    def hash_password(self, password: str) -> str:
        """
        Hash a password securely using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password string
        """
        return self._pwd_context.hash(password)

    def verify_password(self, password: str, hashed_password: str) -> bool:
        """
        Verify password against bcrypt hash.

        Args:
            password: Plain text password
            hashed_password: Stored password hash

        Returns:
            True if password matches, False otherwise
        """
        return self._pwd_context.verify(password, hashed_password)


class AuthenticationService:
    """
    High-level authentication service orchestrating auth operations.

    Combines password verification, lockout, token issuing, rotation and
    revocation to implement sign-up, sign-in, refresh, logout and OAuth
    sign-in. Rate limiting happens before these methods are called.
    """

    def __init__(
        self,
        user_repository: UserRepositoryInterface,
        password_service: PasswordServiceInterface,
        token_codec: TokenCodec,
        rotation_engine: RefreshRotationEngine,
        revocation_registry: RevocationRegistry,
        lockout_guard: AccountLockoutGuard,
    ) -> None:
        """
        Initialize authentication service.

        Args:
            user_repository: User data access interface
            password_service: Password hashing service
            token_codec: Access and refresh token codec
            rotation_engine: Refresh token persistence and rotation
            revocation_registry: Access token blacklist
            lockout_guard: Failed login counter and lock
        """
        self._user_repository = user_repository
        self._password_service = password_service
        self._token_codec = token_codec
        self._rotation_engine = rotation_engine
        self._revocation_registry = revocation_registry
        self._lockout_guard = lockout_guard

    async def sign_up(self, username: str, email: str, password: str) -> AuthSession:
        """
        Register new user account and open a session.

        Args:
            username: Unique username
            email: User email address
            password: Plain text password

        Returns:
            Created user with a fresh token pair

        Raises:
            UserAlreadyExistsException: If username or email already exists
        """
        username = username.lower()
        email = email.lower()

        existing = await self._user_repository.find_by_email_or_username(email, username)
        if existing:
            raise UserAlreadyExistsException()

        user = await self._user_repository.create_user(
            User(
                id=0,
                username=username,
                email=email,
                hashed_password=self._password_service.hash_password(password),
                provider=CREDENTIALS_PROVIDER,
                email_verified=False,
            )
        )
        logger.info(f"User {user.id} signed up")
        return await self._issue_session(user)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Authenticate user by email and password.

        Unknown emails and password-less accounts get the same error as a
        wrong password.

        Raises:
            InvalidCredentialsException: If credentials are invalid
            AccountLockedException: If the account is locked, or this failure locked it
        """
        user = await self._user_repository.get_user_by_email(email.lower())
        if user is None or not user.hashed_password:
            raise InvalidCredentialsException()

        if await self._lockout_guard.is_locked(user.id):
            raise AccountLockedException(user.locked_until)

        if not self._password_service.verify_password(password, user.hashed_password):
            status = await self._lockout_guard.record_failed_attempt(user.id)
            if status.locked:
                raise AccountLockedException(
                    status.locked_until,
                    "Account locked due to too many failed attempts. "
                    f"Try again after {status.locked_until.isoformat()}Z",
                )
            raise InvalidCredentialsException(f"{status.attempts_remaining} attempts remaining")

        await self._lockout_guard.reset(user.id)
        logger.info(f"User {user.id} signed in")
        return await self._issue_session(user)

    async def refresh(self, refresh_token: Optional[str]) -> TokenPair:
        """
        Rotate a refresh token into a new token pair.

        Raises:
            InvalidTokenException: If the token is missing, revoked or invalid
        """
        if not refresh_token:
            raise InvalidTokenException("Refresh token not found")

        if await self._revocation_registry.is_token_blacklisted(refresh_token):
            raise InvalidTokenException("Token has been revoked")

        pair = await self._rotation_engine.rotate(refresh_token)
        if pair is None:
            raise InvalidTokenException("Invalid or expired refresh token")
        return pair

    async def logout(self, access_token: Optional[str], refresh_token: Optional[str]) -> None:
        """
        Revoke the refresh token and blacklist the access token when present.

        An access token that no longer verifies is left alone, it is already
        unusable.
        """
        if refresh_token:
            await self._rotation_engine.revoke(refresh_token)

        if access_token:
            payload = self._token_codec.verify_access_token(access_token)
            if payload is not None:
                await self._revocation_registry.blacklist_token(access_token)
                logger.info(f"User {payload.user_id} logged out")

    async def revoke_all_sessions(self, user_id: int) -> int:
        """Revoke every refresh token of a user."""
        return await self._rotation_engine.revoke_all(user_id)

    async def get_current_user(self, access_token: Optional[str]) -> User:
        """
        Get current user from access token.

        Raises:
            InvalidTokenException: If the token is missing, blacklisted or invalid
            UserNotFoundException: If the user no longer exists
        """
        if not access_token:
            raise InvalidTokenException("Authentication required")

        if await self._revocation_registry.is_token_blacklisted(access_token):
            raise InvalidTokenException("Token has been revoked")

        payload = self._token_codec.verify_access_token(access_token)
        if payload is None:
            raise InvalidTokenException()

        user = await self._user_repository.get_user_by_id(payload.user_id)
        if user is None:
            raise UserNotFoundException(str(payload.user_id))
        return user

    async def oauth_sign_in(self, profile: OAuthProfile) -> AuthSession:
        """
        Sign in with a federated profile, creating or linking the account.

        Args:
            profile: Profile returned by the identity provider, email required

        Returns:
            User with a fresh token pair
        """
        email = profile.email.lower()
        user = await self._user_repository.find_by_email_or_provider(
            email, profile.provider, profile.provider_id
        )

        if user is None:
            user = await self._user_repository.create_user(
                User(
                    id=0,
                    username=self._generate_username(email),
                    email=email,
                    provider=profile.provider,
                    provider_id=profile.provider_id,
                    email_verified=True,
                    image=profile.picture,
                )
            )
            logger.info(f"User {user.id} created from {profile.provider} sign-in")
        elif not user.provider_id or user.provider != profile.provider:
            user = await self._user_repository.update_user(
                user.id,
                provider=profile.provider,
                provider_id=profile.provider_id,
                email_verified=True,
                image=profile.picture or user.image,
            )
            logger.info(f"User {user.id} linked to {profile.provider}")

        return await self._issue_session(user)

    async def _issue_session(self, user: User) -> AuthSession:
        tokens = await self._rotation_engine.issue(user.id, user.email)
        return AuthSession(user=user, tokens=tokens)

    @staticmethod
    def _generate_username(email: str) -> str:
        suffix = secrets.token_hex(3)
        local_part = email.split("@")[0][: USERNAME_MAX_LENGTH - len(suffix)]
        return f"{local_part}{suffix}"
