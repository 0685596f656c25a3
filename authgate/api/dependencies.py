"""FastAPI dependency injection setup."""

from typing import AsyncGenerator, Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.config import Settings
from authgate.core.auth.entities import RateLimitResult, User
from authgate.core.auth.rate_limiter import RateLimiter
from authgate.core.auth.services import AuthenticationService
from authgate.core.auth.token_codec import TokenCodec
from authgate.core.exceptions import RateLimitExceededException
from authgate.infrastructure.container import build_auth_service, build_rate_limiter
from authgate.infrastructure.database.connection import DatabaseManager
from authgate.infrastructure.oauth.google_client import GoogleOAuthClient

security = HTTPBearer(auto_error=False)

UNKNOWN_CLIENT = "unknown"


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


async def get_database_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide database session for dependency injection.

    Yields:
        AsyncSession: Database session, committed when the request completes
    """
    db_manager: DatabaseManager = request.app.state.db_manager
    async with db_manager.get_session() as session:
        yield session


async def get_auth_service(
    session: AsyncSession = Depends(get_database_session),
    settings: Settings = Depends(get_app_settings),
    token_codec: TokenCodec = Depends(get_token_codec),
) -> AuthenticationService:
    """
    Provide authentication service for dependency injection.

    Args:
        session: Database session
        settings: Application settings
        token_codec: Shared token codec

    Returns:
        AuthenticationService: Authentication service bound to the request session
    """
    return build_auth_service(session, settings, token_codec)


def get_google_client(settings: Settings = Depends(get_app_settings)) -> GoogleOAuthClient:
    return GoogleOAuthClient.from_settings(settings)


def get_client_ip(request: Request) -> str:
    """
    Resolve the caller IP from proxy headers.

    Returns:
        First X-Forwarded-For entry, else X-Real-IP, else "unknown"
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or UNKNOWN_CLIENT

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return UNKNOWN_CLIENT


async def count_request(request: Request, settings: Settings, endpoint: str) -> RateLimitResult:
    """
    Count one request of the caller against an endpoint.

    Runs in its own unit of work, so the attempt is counted even when the
    request is rejected later on.

    Args:
        request: Incoming request, used to resolve the caller IP
        settings: Application settings
        endpoint: Logical endpoint name used as part of the counter key

    Returns:
        Limiter verdict
    """
    db_manager: DatabaseManager = request.app.state.db_manager
    async with db_manager.get_session() as session:
        limiter: RateLimiter = build_rate_limiter(session, settings)
        return await limiter.check_rate_limit(get_client_ip(request), endpoint)


def rate_limit(endpoint: str) -> Callable:
    """
    Build a dependency that throttles an endpoint per client IP.

    Args:
        endpoint: Logical endpoint name used as part of the counter key

    Returns:
        Dependency raising RateLimitExceededException when over the cap
    """

    async def enforce_rate_limit(
        request: Request,
        settings: Settings = Depends(get_app_settings),
    ) -> None:
        result = await count_request(request, settings, endpoint)
        if not result.allowed:
            raise RateLimitExceededException(result)

    return enforce_rate_limit


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Bearer token from the Authorization header, if present."""
    if credentials is None:
        return None
    return credentials.credentials


def get_refresh_cookie(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> Optional[str]:
    return request.cookies.get(settings.refresh_cookie_name)


async def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    auth_service: AuthenticationService = Depends(get_auth_service),
) -> User:
    """
    Get current authenticated user from the bearer access token.

    Checks the blacklist as well as signature, expiry and token kind.

    Raises:
        InvalidTokenException: If the token is missing, revoked or invalid
        UserNotFoundException: If the user no longer exists
    """
    return await auth_service.get_current_user(token)
