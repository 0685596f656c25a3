"""Authentication database models."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from authgate.infrastructure.database.connection import Base
from authgate.utils.clock import utcnow

TOKEN_LENGTH = 1024


class UserModel(Base):
    """
    Database model for user accounts.

    Holds credentials, federated identity and the failed login counter.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Unique user identifier"
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        doc="Lowercase email address"
    )

    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        doc="Lowercase username"
    )

    hashed_password: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Bcrypt hashed password, NULL for OAuth-only accounts"
    )

    provider: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
        doc="Federated provider name"
    )

    provider_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        doc="Identifier assigned by the provider"
    )

    email_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    image: Mapped[Optional[str]] = mapped_column(
        String(1024),
        nullable=True,
        doc="Avatar URL"
    )

    failed_login_attempts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    locked_until: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        doc="Lock expiry, NULL when not locked"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        """String representation of user model."""
        return f"<UserModel(id={self.id}, username='{self.username}', email='{self.email}')>"


class RefreshTokenModel(Base):
    """
    Database model for refresh tokens.

    One row per issued refresh token; ``revoked_at`` is NULL while active.
    """

    __tablename__ = "refresh_tokens"

    token: Mapped[str] = mapped_column(
        String(TOKEN_LENGTH),
        primary_key=True,
        doc="The signed refresh token string"
    )

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="ID of user this token belongs to"
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        index=True,
        doc="Token expiration timestamp"
    )

    revoked_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        doc="Revocation timestamp"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        """String representation of refresh token model."""
        return f"<RefreshTokenModel(user_id={self.user_id}, revoked_at={self.revoked_at})>"


class TokenBlacklistModel(Base):
    """Database model for blacklisted access tokens."""

    __tablename__ = "token_blacklist"

    token: Mapped[str] = mapped_column(
        String(TOKEN_LENGTH),
        primary_key=True,
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        index=True,
        doc="Expiry copied from the token claims"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
    )


class RateLimitModel(Base):
    """Database model for fixed-window rate limit counters."""

    __tablename__ = "rate_limits"
    __table_args__ = (
        Index("ix_rate_limits_key_window", "identifier", "endpoint", "window_start"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    identifier: Mapped[str] = mapped_column(String(255), nullable=False)

    endpoint: Mapped[str] = mapped_column(String(255), nullable=False)

    count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    window_start: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)


class AccountLockoutModel(Base):
    """Append-only audit log of account locks."""

    __tablename__ = "account_lockouts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    locked_until: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    reason: Mapped[str] = mapped_column(String(64), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
    )
