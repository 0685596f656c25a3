"""Authentication domain entities."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class User:
    """
    User entity for authentication.

    Attributes:
        id: Unique user identifier
        username: Unique lowercase username
        email: Unique lowercase email address
        hashed_password: Bcrypt hash, absent for accounts created through OAuth
        provider: Federated provider name ("credentials", "google", ...)
        provider_id: Identifier assigned by the federated provider
        email_verified: Whether the email address has been verified
        image: Optional avatar URL
        failed_login_attempts: Consecutive failed password checks
        locked_until: Lock expiry, None when the account is not locked
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    id: int
    username: str
    email: str
    hashed_password: Optional[str] = None
    provider: Optional[str] = None
    provider_id: Optional[str] = None
    email_verified: bool = False
    image: Optional[str] = None
    failed_login_attempts: int = 0
    locked_until: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        """Validate user data after initialization."""
        if not self.username:
            raise ValueError("Username cannot be empty")
        if not self.email:
            raise ValueError("Email cannot be empty")
        if "@" not in self.email:
            raise ValueError("Invalid email format")
        if self.failed_login_attempts < 0:
            raise ValueError("Failed login attempts cannot be negative")


@dataclass(frozen=True)
class RefreshToken:
    """
    Stored refresh token, one link of a rotation chain.

    Attributes:
        token: The signed refresh token string
        user_id: User ID this token belongs to
        expires_at: Token expiration timestamp
        revoked_at: Revocation timestamp, None while the token is active
        created_at: Token creation timestamp
    """

    token: str
    user_id: int
    expires_at: datetime
    revoked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        """Validate refresh token data."""
        if not self.token:
            raise ValueError("Token cannot be empty")
        if self.user_id <= 0:
            raise ValueError("User ID must be positive")

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: datetime) -> bool:
        """Check if refresh token is expired at the given instant."""
        return self.expires_at < now

    def is_active(self, now: datetime) -> bool:
        """Check if refresh token is neither revoked nor expired."""
        return not self.is_revoked and not self.is_expired(now)


@dataclass(frozen=True)
class TokenPair:
    """
    Access and refresh token pair.

    Attributes:
        access_token: Short-lived JWT access token
        refresh_token: Long-lived JWT refresh token
        token_type: Token type (typically "bearer")
        expires_in: Access token lifetime in seconds
    """

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = 900

    def __post_init__(self) -> None:
        """Validate token pair data."""
        if not self.access_token:
            raise ValueError("Access token cannot be empty")
        if not self.refresh_token:
            raise ValueError("Refresh token cannot be empty")


@dataclass(frozen=True)
class TokenPayload:
    """
    Verified JWT claims.

    Attributes:
        user_id: Subject user ID
        email: Subject email
        token_type: Kind of token ("access" or "refresh")
        exp: Expiration timestamp
        iat: Issued at timestamp
    """

    user_id: int
    email: str
    token_type: str
    exp: int
    iat: int

    def __post_init__(self) -> None:
        """Validate token payload data."""
        if self.user_id <= 0:
            raise ValueError("Subject must be a positive user ID")
        if not self.email:
            raise ValueError("Email cannot be empty")
        if self.token_type not in (ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE):
            raise ValueError(f"Unknown token type: {self.token_type}")
        if self.exp <= self.iat:
            raise ValueError("Expiration must be after issued time")


@dataclass(frozen=True)
class BlacklistedToken:
    """Access token rejected before its natural expiry."""

    token: str
    expires_at: datetime


@dataclass(frozen=True)
class RateLimitWindow:
    """Fixed-window request counter for one identifier and endpoint."""

    id: int
    identifier: str
    endpoint: str
    count: int
    window_start: datetime


@dataclass(frozen=True)
class RateLimitResult:
    """
    Verdict of a rate limit check.

    Attributes:
        allowed: Whether the request may proceed
        remaining: Requests left in the current window, never negative
        reset_at: End of the current window
        limit: Request cap per window
    """

    allowed: bool
    remaining: int
    reset_at: datetime
    limit: int


@dataclass(frozen=True)
class LockoutStatus:
    """Outcome of recording a failed login attempt."""

    locked: bool
    attempts_remaining: int
    locked_until: Optional[datetime] = None


@dataclass(frozen=True)
class AccountLockout:
    """Audit record of a lock imposed on an account."""

    id: int
    user_id: int
    locked_until: datetime
    reason: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class OAuthProfile:
    """User profile returned by a federated identity provider."""

    provider: str
    provider_id: str
    email: Optional[str]
    name: Optional[str] = None
    picture: Optional[str] = None


@dataclass(frozen=True)
class AuthSession:
    """Authenticated user together with a freshly issued token pair."""

    user: User
    tokens: TokenPair
