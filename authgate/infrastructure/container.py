"""Construction of auth components over one database session."""

from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from authgate.config import Settings
from authgate.core.auth.lockout import AccountLockoutGuard
from authgate.core.auth.rate_limiter import RateLimiter
from authgate.core.auth.revocation import RevocationRegistry
from authgate.core.auth.rotation import RefreshRotationEngine
from authgate.core.auth.services import AuthenticationService, PasswordService
from authgate.core.auth.sweeper import StorageSweeper
from authgate.core.auth.token_codec import TokenCodec
from authgate.infrastructure.database.repositories.account_lockout_repository import SqlAccountLockoutRepository
from authgate.infrastructure.database.repositories.rate_limit_repository import SqlRateLimitRepository
from authgate.infrastructure.database.repositories.refresh_token_repository import SqlRefreshTokenRepository
from authgate.infrastructure.database.repositories.token_blacklist_repository import SqlTokenBlacklistRepository
from authgate.infrastructure.database.repositories.user_repository import SqlUserRepository


def build_rotation_engine(session: AsyncSession, token_codec: TokenCodec) -> RefreshRotationEngine:
    return RefreshRotationEngine(SqlRefreshTokenRepository(session), token_codec)


def build_revocation_registry(session: AsyncSession, token_codec: TokenCodec) -> RevocationRegistry:
    return RevocationRegistry(
        SqlTokenBlacklistRepository(session),
        token_codec,
        fallback_ttl=token_codec.refresh_ttl,
    )


def build_rate_limiter(session: AsyncSession, settings: Settings) -> RateLimiter:
    return RateLimiter(
        SqlRateLimitRepository(session),
        max_requests=settings.rate_limit_max_requests,
        window=timedelta(seconds=settings.rate_limit_window_seconds),
    )


def build_lockout_guard(session: AsyncSession, settings: Settings) -> AccountLockoutGuard:
    return AccountLockoutGuard(
        SqlUserRepository(session),
        SqlAccountLockoutRepository(session),
        max_attempts=settings.lockout_max_attempts,
        lock_duration=timedelta(minutes=settings.lockout_duration_minutes),
    )


def build_auth_service(
    session: AsyncSession, settings: Settings, token_codec: TokenCodec
) -> AuthenticationService:
    """
    Assemble the authentication service for one unit of work.

    Every component shares the session, so everything a request writes
    commits or rolls back together.
    """
    return AuthenticationService(
        user_repository=SqlUserRepository(session),
        password_service=PasswordService(),
        token_codec=token_codec,
        rotation_engine=build_rotation_engine(session, token_codec),
        revocation_registry=build_revocation_registry(session, token_codec),
        lockout_guard=build_lockout_guard(session, settings),
    )


def build_sweeper(session: AsyncSession, settings: Settings, token_codec: TokenCodec) -> StorageSweeper:
    return StorageSweeper(
        rotation_engine=build_rotation_engine(session, token_codec),
        revocation_registry=build_revocation_registry(session, token_codec),
        rate_limiter=build_rate_limiter(session, settings),
    )
