"""Authentication API routes."""

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.api.dependencies import (
    count_request,
    get_app_settings,
    get_auth_service,
    get_bearer_token,
    get_current_user,
    get_database_session,
    get_google_client,
    get_refresh_cookie,
    rate_limit,
)
from authgate.config import Settings
from authgate.core.auth.entities import User
from authgate.core.auth.services import AuthenticationService
from authgate.infrastructure.oauth.google_client import (
    GoogleOAuthClient,
    OAuthExchangeError,
    OAuthUserInfoError,
)
from .schemas import (
    CurrentUserResponse,
    ErrorResponse,
    GoogleAuthUrlResponse,
    LockedResponse,
    LogoutResponse,
    RefreshResponse,
    SignInRequest,
    SignInResponse,
    SignUpRequest,
    SignUpResponse,
    ValidationErrorResponse,
    user_profile,
    user_summary,
)

logger = logging.getLogger("authgate.api.auth")

router = APIRouter(prefix="/auth", tags=["Authentication"])

SIGNUP_ENDPOINT = "/api/auth/signup"
SIGNIN_ENDPOINT = "/api/auth/signin"
GOOGLE_ENDPOINT = "/api/auth/google"

SECONDS_PER_DAY = 24 * 60 * 60


def set_refresh_cookie(response: Response, settings: Settings, refresh_token: str) -> None:
    """Attach the refresh token as an HttpOnly cookie."""
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=refresh_token,
        max_age=settings.refresh_token_expire_days * SECONDS_PER_DAY,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite="lax",
    )


def clear_refresh_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite="lax",
    )


@router.post(
    "/signup",
    response_model=SignUpResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit(SIGNUP_ENDPOINT))],
    summary="Sign up",
    description="Create a credentials account and open a session.",
    responses={
        201: {"description": "User created, refresh token set as cookie"},
        400: {"model": ValidationErrorResponse, "description": "Invalid input data"},
        409: {"model": ErrorResponse, "description": "User already exists"},
        429: {"model": ErrorResponse, "description": "Too many requests"},
    },
)
async def sign_up(
    payload: SignUpRequest,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    auth_service: AuthenticationService = Depends(get_auth_service),
) -> SignUpResponse:
    """
    Register a new user account.

    Username and email must be unique. Both are stored lower-cased.
    """
    session = await auth_service.sign_up(
        username=payload.username,
        email=payload.email,
        password=payload.password,
    )
    set_refresh_cookie(response, settings, session.tokens.refresh_token)
    return SignUpResponse(user=user_summary(session.user), access_token=session.tokens.access_token)


@router.post(
    "/signin",
    response_model=SignInResponse,
    dependencies=[Depends(rate_limit(SIGNIN_ENDPOINT))],
    summary="Sign in",
    description="Authenticate with email and password.",
    responses={
        200: {"description": "Signed in, refresh token set as cookie"},
        400: {"model": ValidationErrorResponse, "description": "Invalid input data"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        423: {"model": LockedResponse, "description": "Account locked"},
        429: {"model": ErrorResponse, "description": "Too many requests"},
    },
)
async def sign_in(
    credentials: SignInRequest,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    auth_service: AuthenticationService = Depends(get_auth_service),
) -> SignInResponse:
    """
    Authenticate user and return an access token.

    The refresh token is only ever sent as an HttpOnly cookie.
    """
    session = await auth_service.sign_in(credentials.email, credentials.password)
    set_refresh_cookie(response, settings, session.tokens.refresh_token)
    return SignInResponse(user=user_profile(session.user), access_token=session.tokens.access_token)


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    summary="Refresh access token",
    description="Rotate the refresh token cookie into a new token pair.",
    responses={
        200: {"description": "Token refreshed, new refresh token set as cookie"},
        401: {"model": ErrorResponse, "description": "Missing, revoked or expired refresh token"},
    },
)
async def refresh_token(
    response: Response,
    refresh_cookie: Optional[str] = Depends(get_refresh_cookie),
    settings: Settings = Depends(get_app_settings),
    auth_service: AuthenticationService = Depends(get_auth_service),
) -> RefreshResponse:
    """
    Exchange the refresh token cookie for a new access token.

    The presented refresh token is revoked; replaying it fails.
    """
    token_pair = await auth_service.refresh(refresh_cookie)
    set_refresh_cookie(response, settings, token_pair.refresh_token)
    return RefreshResponse(access_token=token_pair.access_token)


@router.post(
    "/logout",
    response_model=LogoutResponse,
    summary="Log out",
    description="Revoke the refresh token, blacklist the access token and clear the cookie.",
)
async def logout(
    response: Response,
    access_token: Optional[str] = Depends(get_bearer_token),
    refresh_cookie: Optional[str] = Depends(get_refresh_cookie),
    settings: Settings = Depends(get_app_settings),
    auth_service: AuthenticationService = Depends(get_auth_service),
) -> LogoutResponse:
    """Best-effort revocation, succeeds even without credentials."""
    await auth_service.logout(access_token, refresh_cookie)
    clear_refresh_cookie(response, settings)
    return LogoutResponse()


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    summary="Current user",
    description="Return the user owning the bearer access token.",
    responses={
        401: {"model": ErrorResponse, "description": "Missing, revoked or invalid token"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def get_me(current_user: User = Depends(get_current_user)) -> CurrentUserResponse:
    return CurrentUserResponse(user=user_profile(current_user))


@router.get(
    "/google",
    response_class=RedirectResponse,
    status_code=status.HTTP_302_FOUND,
    summary="Google OAuth callback",
    description="Complete Google sign-in and redirect to the dashboard or back to sign-in.",
    responses={302: {"description": "Redirect with refresh token cookie, or to sign-in with an error"}},
)
async def google_callback(
    request: Request,
    code: Optional[str] = None,
    error: Optional[str] = None,
    settings: Settings = Depends(get_app_settings),
    google_client: GoogleOAuthClient = Depends(get_google_client),
    session: AsyncSession = Depends(get_database_session),
    auth_service: AuthenticationService = Depends(get_auth_service),
) -> RedirectResponse:
    """
    Handle the redirect back from the Google consent screen.

    Every failure stage redirects to the sign-in page with an ``error`` code.
    """
    if error:
        return _signin_redirect(settings, error)

    if not code:
        return _signin_redirect(settings, "missing_code")

    try:
        verdict = await count_request(request, settings, GOOGLE_ENDPOINT)
        if not verdict.allowed:
            return _signin_redirect(settings, "rate_limit_exceeded")

        try:
            provider_token = await google_client.exchange_code(code)
        except OAuthExchangeError:
            return _signin_redirect(settings, "oauth_failed")

        try:
            profile = await google_client.fetch_user_info(provider_token)
        except OAuthUserInfoError:
            return _signin_redirect(settings, "user_info_failed")

        if not profile.email:
            return _signin_redirect(settings, "no_email")

        auth_session = await auth_service.oauth_sign_in(profile)
    except Exception:
        logger.exception("Google OAuth sign-in failed")
        await session.rollback()
        return _signin_redirect(settings, "internal_error")

    redirect = RedirectResponse(
        url=f"{settings.app_url.rstrip('/')}{settings.dashboard_path}",
        status_code=status.HTTP_302_FOUND,
    )
    set_refresh_cookie(redirect, settings, auth_session.tokens.refresh_token)
    return redirect


@router.post(
    "/google",
    response_model=GoogleAuthUrlResponse,
    summary="Google OAuth URL",
    description="Return the Google consent screen URL for this application.",
)
async def google_auth_url(
    google_client: GoogleOAuthClient = Depends(get_google_client),
) -> GoogleAuthUrlResponse:
    return GoogleAuthUrlResponse(auth_url=google_client.authorization_url())


def _signin_redirect(settings: Settings, error_code: str) -> RedirectResponse:
    return RedirectResponse(
        url=f"{settings.app_url.rstrip('/')}{settings.signin_path}?error={quote(error_code, safe='')}",
        status_code=status.HTTP_302_FOUND,
    )
