"""Authentication service interfaces."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .entities import (
    AccountLockout,
    BlacklistedToken,
    RateLimitWindow,
    RefreshToken,
    User,
)


class PasswordServiceInterface(ABC):
    """Interface for password hashing and verification."""

    @abstractmethod
    def hash_password(self, password: str) -> str:
        """
        Hash a password securely.

        Args:
            password: Plain text password

        Returns:
            Hashed password string
        """
        pass

    @abstractmethod
    def verify_password(self, password: str, hashed_password: str) -> bool:
        """
        Verify password against hash.

        Args:
            password: Plain text password
            hashed_password: Stored password hash

        Returns:
            True if password matches, False otherwise
        """
        pass


class UserRepositoryInterface(ABC):
    """Interface for user data access operations."""

    @abstractmethod
    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        """
        Get user by ID.

        Args:
            user_id: User identifier

        Returns:
            User entity if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email.

        Args:
            email: Lowercase email address

        Returns:
            User entity if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_email_or_username(self, email: str, username: str) -> Optional[User]:
        """
        Find a user holding either identity.

        Args:
            email: Lowercase email address
            username: Lowercase username

        Returns:
            First matching user, None if neither is taken
        """
        pass

    @abstractmethod
    async def find_by_email_or_provider(
        self, email: str, provider: str, provider_id: str
    ) -> Optional[User]:
        """
        Find a user by email or by federated provider identity.

        Args:
            email: Lowercase email address
            provider: Provider name
            provider_id: Identifier assigned by the provider

        Returns:
            First matching user, None otherwise
        """
        pass

    @abstractmethod
    async def create_user(self, user: User) -> User:
        """
        Create new user.

        Args:
            user: User entity to create (its id is ignored)

        Returns:
            Created user entity with ID

        Raises:
            UserAlreadyExistsException: If username or email already exists
        """
        pass

    @abstractmethod
    async def update_user(self, user_id: int, **fields) -> Optional[User]:
        """
        Update selected columns of a user.

        Args:
            user_id: User identifier
            **fields: Column values to set

        Returns:
            Updated user entity, None if not found
        """
        pass

    @abstractmethod
    async def increment_failed_attempts(self, user_id: int) -> Optional[int]:
        """
        Atomically add one to the failed login counter.

        Args:
            user_id: User identifier

        Returns:
            New counter value, None if the user does not exist
        """
        pass

    @abstractmethod
    async def set_lock(self, user_id: int, locked_until: datetime) -> None:
        """Set the lock expiry of a user."""
        pass

    @abstractmethod
    async def clear_lock(self, user_id: int) -> None:
        """Zero the failed counter and clear the lock expiry unconditionally."""
        pass

    @abstractmethod
    async def clear_expired_lock(self, user_id: int, now: datetime) -> bool:
        """
        Clear a lock whose expiry has passed, resetting the failed counter.

        Args:
            user_id: User identifier
            now: Current instant

        Returns:
            True if a stale lock was cleared
        """
        pass


class RefreshTokenRepositoryInterface(ABC):
    """Interface for refresh token data access operations."""

    @abstractmethod
    async def save_refresh_token(self, token: RefreshToken) -> RefreshToken:
        """
        Save refresh token.

        Args:
            token: Refresh token entity

        Returns:
            Saved refresh token
        """
        pass

    @abstractmethod
    async def get_refresh_token(self, token: str) -> Optional[RefreshToken]:
        """
        Get refresh token by token string.

        Args:
            token: Refresh token string

        Returns:
            Refresh token entity if found, None otherwise
        """
        pass

    @abstractmethod
    async def revoke_if_active(self, token: str, now: datetime) -> bool:
        """
        Revoke a token only if it is still unrevoked and unexpired.

        Implemented as a single conditional update so that two concurrent
        callers cannot both observe success for the same token.

        Args:
            token: Refresh token string
            now: Revocation timestamp and expiry reference

        Returns:
            True if this call revoked the token
        """
        pass

    @abstractmethod
    async def revoke_token(self, token: str, now: datetime) -> bool:
        """
        Revoke refresh token if it is not revoked yet.

        Args:
            token: Refresh token string
            now: Revocation timestamp

        Returns:
            True if a row changed, False if absent or already revoked
        """
        pass

    @abstractmethod
    async def revoke_user_tokens(self, user_id: int, now: datetime) -> int:
        """
        Revoke all unrevoked refresh tokens for user.

        Args:
            user_id: User identifier
            now: Revocation timestamp

        Returns:
            Number of tokens revoked
        """
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """
        Remove refresh tokens whose expiry has passed.

        Returns:
            Number of tokens removed
        """
        pass


class TokenBlacklistRepositoryInterface(ABC):
    """Interface for access token blacklist storage."""

    @abstractmethod
    async def upsert(self, token: str, expires_at: datetime) -> None:
        """Insert a blacklist entry or refresh the expiry of an existing one."""
        pass

    @abstractmethod
    async def get(self, token: str) -> Optional[BlacklistedToken]:
        """Get blacklist entry by token string."""
        pass

    @abstractmethod
    async def delete(self, token: str) -> None:
        """Delete blacklist entry by token string."""
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Delete entries whose expiry has passed, returning the count."""
        pass


class RateLimitRepositoryInterface(ABC):
    """Interface for fixed-window rate limit counters."""

    @abstractmethod
    async def delete_windows_before(self, cutoff: datetime) -> int:
        """Delete every window that started before the cutoff."""
        pass

    @abstractmethod
    async def find_window(
        self, identifier: str, endpoint: str, since: datetime
    ) -> Optional[RateLimitWindow]:
        """Find the window for identifier and endpoint started at or after since."""
        pass

    @abstractmethod
    async def increment(self, window_id: int) -> Optional[int]:
        """
        Atomically add one to a window counter.

        Returns:
            New count, None if the window no longer exists
        """
        pass

    @abstractmethod
    async def create_window(
        self, identifier: str, endpoint: str, window_start: datetime
    ) -> RateLimitWindow:
        """Create a window with a count of one."""
        pass


class AccountLockoutRepositoryInterface(ABC):
    """Interface for the append-only lock audit log."""

    @abstractmethod
    async def record(self, user_id: int, locked_until: datetime, reason: str) -> AccountLockout:
        """Append a lock event."""
        pass

    @abstractmethod
    async def list_for_user(self, user_id: int) -> List[AccountLockout]:
        """List lock events for a user, oldest first."""
        pass
