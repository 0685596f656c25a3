"""Domain exceptions for the authentication service."""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from authgate.core.auth.entities import RateLimitResult


class DomainException(Exception):
    """Base exception for domain-related errors."""

    status_code: int = 400

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationException(DomainException):
    """Raised when input has the wrong shape or violates a field rule."""

    status_code = 400


class AuthenticationException(DomainException):
    """Base exception for authentication errors."""

    status_code = 401


class InvalidCredentialsException(AuthenticationException):
    """Raised when login credentials are invalid."""

    def __init__(self, details: Optional[str] = None) -> None:
        super().__init__("Invalid email or password", details)


class InvalidTokenException(AuthenticationException):
    """Raised when a token is missing, invalid, expired, revoked or of the wrong kind."""

    def __init__(self, reason: str = "Invalid or expired token") -> None:
        super().__init__(reason)


class AccountLockedException(DomainException):
    """Raised when an account is temporarily locked after repeated failures."""

    status_code = 423

    def __init__(self, locked_until: Optional[datetime], message: Optional[str] = None) -> None:
        """
        Initialize account locked exception.

        Args:
            locked_until: Instant the lock expires, if known
            message: Override for the default message
        """
        super().__init__(message or "Account is locked. Please try again later.")
        self.locked_until = locked_until


class RateLimitExceededException(DomainException):
    """Raised when a caller exceeds the request cap for an endpoint."""

    status_code = 429

    def __init__(self, result: "RateLimitResult") -> None:
        """
        Initialize rate limit exception.

        Args:
            result: Limiter verdict carrying remaining count and reset time
        """
        super().__init__(
            f"Rate limit exceeded. Please try again after {result.reset_at.isoformat()}Z"
        )
        self.result = result


class ConflictException(DomainException):
    """Raised when an identity already exists."""

    status_code = 409


class UserAlreadyExistsException(ConflictException):
    """Raised when trying to create user that already exists."""

    def __init__(self) -> None:
        super().__init__("User with this email or username already exists")


class NotFoundException(DomainException):
    """Raised when a requested record does not exist."""

    status_code = 404


class UserNotFoundException(NotFoundException):
    """Raised when user is not found."""

    def __init__(self, identifier: str) -> None:
        super().__init__("User not found", f"User: {identifier}")
        self.identifier = identifier


class InternalException(DomainException):
    """Raised when an invariant of the store or signer is broken."""

    status_code = 500
