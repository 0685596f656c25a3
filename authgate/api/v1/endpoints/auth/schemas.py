"""Authentication API schemas."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from authgate.core.auth.entities import User


class SignUpRequest(BaseModel):
    """User registration request schema."""

    username: str = Field(
        ...,
        min_length=3,
        max_length=30,
        description="Username (3-30 characters)",
        examples=["ann"]
    )
    email: EmailStr = Field(
        ...,
        description="User email address",
        examples=["a@x.com"]
    )
    password: str = Field(
        ...,
        min_length=8,
        description="Password (at least 8 characters)",
        examples=["longenough1"]
    )


class SignInRequest(BaseModel):
    """User sign-in request schema."""

    email: EmailStr = Field(
        ...,
        description="User email address",
        examples=["a@x.com"]
    )
    password: str = Field(
        ...,
        min_length=1,
        description="Password",
        examples=["longenough1"]
    )


class UserSummary(BaseModel):
    """Public user fields returned on sign-up."""

    id: int = Field(..., description="User unique identifier", examples=[1])
    email: str = Field(..., description="User email address", examples=["a@x.com"])
    username: str = Field(..., description="Username", examples=["ann"])

    model_config = ConfigDict(from_attributes=True)


class UserProfile(UserSummary):
    """Public user fields including the avatar."""

    image: Optional[str] = Field(
        None,
        description="Avatar URL",
        examples=["https://lh3.googleusercontent.com/a/photo.jpg"]
    )


class SignUpResponse(BaseModel):
    """Sign-up response schema."""

    success: bool = True
    user: UserSummary
    access_token: str = Field(
        ...,
        alias="accessToken",
        description="JWT access token",
        examples=["eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9..."]
    )

    model_config = ConfigDict(populate_by_name=True)


class SignInResponse(BaseModel):
    """Sign-in response schema."""

    success: bool = True
    user: UserProfile
    access_token: str = Field(
        ...,
        alias="accessToken",
        description="JWT access token",
        examples=["eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9..."]
    )

    model_config = ConfigDict(populate_by_name=True)


class RefreshResponse(BaseModel):
    """Refresh response schema, the new refresh token travels in the cookie."""

    success: bool = True
    access_token: str = Field(..., alias="accessToken", description="New JWT access token")

    model_config = ConfigDict(populate_by_name=True)


class LogoutResponse(BaseModel):
    """Logout response schema."""

    success: bool = True
    message: str = Field(default="Logged out successfully")


class CurrentUserResponse(BaseModel):
    """Current user response schema."""

    success: bool = True
    user: UserProfile


class GoogleAuthUrlResponse(BaseModel):
    """Google consent screen URL."""

    auth_url: str = Field(
        ...,
        alias="authUrl",
        description="URL to send the browser to",
        examples=["https://accounts.google.com/o/oauth2/v2/auth?client_id=..."]
    )

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Error response schema."""

    error: str = Field(
        ...,
        description="Error message",
        examples=["Invalid email or password"]
    )
    type: Optional[str] = Field(
        None,
        description="Error type",
        examples=["InvalidCredentialsException"]
    )
    details: Optional[Any] = None


class LockedResponse(ErrorResponse):
    """Account locked response schema."""

    locked_until: Optional[str] = Field(
        None,
        alias="lockedUntil",
        description="Instant the lock expires",
        examples=["2026-01-01T12:15:00Z"]
    )


class ValidationErrorResponse(BaseModel):
    """Request validation error schema."""

    error: str = Field(default="Validation error")
    details: List[Any] = Field(default_factory=list)


def user_summary(user: User) -> UserSummary:
    return UserSummary.model_validate(user)


def user_profile(user: User) -> UserProfile:
    return UserProfile.model_validate(user)
