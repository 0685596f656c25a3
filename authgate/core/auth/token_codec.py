"""Signed access and refresh token codec."""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from authgate.config import Settings
from authgate.utils.clock import Clock, to_timestamp, utcnow
from .entities import ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE, TokenPair, TokenPayload

logger = logging.getLogger("authgate.auth.tokens")


class TokenCodec:
    """
    JWT codec issuing and verifying access and refresh tokens.

    Access and refresh tokens are signed with different secrets and carry a
    ``type`` claim, so a token of one kind never verifies as the other even if
    one of the secrets leaks. Every token also carries a random ``jti`` which
    makes token strings unique even when issued for the same user in the same
    second.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        clock: Clock = utcnow,
    ) -> None:
        """
        Initialize token codec.

        Args:
            access_secret: Secret for access tokens
            refresh_secret: Secret for refresh tokens, must differ from access_secret
            algorithm: JWS algorithm
            access_ttl: Access token lifetime
            refresh_ttl: Refresh token lifetime
            clock: Source of the current naive UTC time used for iat/exp
        """
        if access_secret == refresh_secret:
            raise ValueError("Refresh secret must differ from access secret")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._algorithm = algorithm
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(
            access_secret=settings.jwt_access_secret,
            refresh_secret=settings.jwt_refresh_secret,
            algorithm=settings.jwt_algorithm,
            access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
        )

    @property
    def access_ttl(self) -> timedelta:
        return self._access_ttl

    @property
    def refresh_ttl(self) -> timedelta:
        return self._refresh_ttl

    def issue_access_token(self, user_id: int, email: str) -> str:
        """
        Create access token for user.

        Args:
            user_id: User identifier
            email: User email

        Returns:
            Signed access token string
        """
        return self._encode(user_id, email, ACCESS_TOKEN_TYPE, self._access_ttl, self._access_secret)

    def issue_refresh_token(self, user_id: int, email: str) -> str:
        """
        Create refresh token for user.

        Args:
            user_id: User identifier
            email: User email

        Returns:
            Signed refresh token string
        """
        return self._encode(user_id, email, REFRESH_TOKEN_TYPE, self._refresh_ttl, self._refresh_secret)

    def issue_pair(self, user_id: int, email: str) -> TokenPair:
        """Create access and refresh token pair for the same claims."""
        return TokenPair(
            access_token=self.issue_access_token(user_id, email),
            refresh_token=self.issue_refresh_token(user_id, email),
            expires_in=int(self._access_ttl.total_seconds()),
        )

    def refresh_expires_at(self) -> datetime:
        """Expiry to store alongside a refresh token issued now."""
        return self._clock() + self._refresh_ttl

    def verify_access_token(self, token: str) -> Optional[TokenPayload]:
        """
        Verify signature, expiry and kind of an access token.

        Returns:
            Token payload, or None for any invalid token
        """
        return self._verify(token, self._access_secret, ACCESS_TOKEN_TYPE)

    def verify_refresh_token(self, token: str) -> Optional[TokenPayload]:
        """
        Verify signature, expiry and kind of a refresh token.

        Returns:
            Token payload, or None for any invalid token
        """
        return self._verify(token, self._refresh_secret, REFRESH_TOKEN_TYPE)

    def decode_unverified(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Read claims without checking the signature.

        Only for inspection such as copying the expiry of a token being
        blacklisted. Never base a trust decision on the result.
        """
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            return None
        return claims if isinstance(claims, dict) else None

    def _encode(
        self,
        user_id: int,
        email: str,
        token_type: str,
        ttl: timedelta,
        secret: str,
    ) -> str:
        now = self._clock()
        claims = {
            "userId": user_id,
            "email": email,
            "type": token_type,
            "iat": to_timestamp(now),
            "exp": to_timestamp(now + ttl),
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(claims, secret, algorithm=self._algorithm)

    def _verify(self, token: str, secret: str, expected_type: str) -> Optional[TokenPayload]:
        try:
            claims = jwt.decode(token, secret, algorithms=[self._algorithm])
        except JWTError as e:
            logger.debug(f"Rejected {expected_type} token: {e}")
            return None

        if claims.get("type") != expected_type:
            logger.debug(f"Rejected token of type {claims.get('type')!r}, expected {expected_type!r}")
            return None

        try:
            return TokenPayload(
                user_id=int(claims["userId"]),
                email=str(claims["email"]),
                token_type=claims["type"],
                exp=int(claims["exp"]),
                iat=int(claims["iat"]),
            )
        except (KeyError, TypeError, ValueError):
            logger.debug(f"Rejected {expected_type} token with malformed claims")
            return None
