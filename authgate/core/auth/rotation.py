"""Single-use refresh token rotation."""

import logging
from datetime import datetime
from typing import Optional

from authgate.utils.clock import Clock, utcnow
from .entities import RefreshToken, TokenPair
from .interfaces import RefreshTokenRepositoryInterface
from .token_codec import TokenCodec

logger = logging.getLogger("authgate.auth.rotation")


class RefreshRotationEngine:
    """
    Persists refresh tokens and exchanges them for successors.

    Every stored token is one link of a rotation chain. A token is active
    until it is rotated, revoked or expires; rotation revokes it and stores
    exactly one successor. Revocation is a conditional update on the row, and
    the successor is written in the same session, so both commit together and
    a concurrent rotation of the same token cannot also succeed.
    """

    def __init__(
        self,
        refresh_token_repository: RefreshTokenRepositoryInterface,
        token_codec: TokenCodec,
        clock: Clock = utcnow,
    ) -> None:
        """
        Initialize rotation engine.

        Args:
            refresh_token_repository: Refresh token storage
            token_codec: Codec used to verify and mint tokens
            clock: Source of the current naive UTC time
        """
        self._repository = refresh_token_repository
        self._token_codec = token_codec
        self._clock = clock

    async def store(self, user_id: int, token: str, expires_at: datetime) -> RefreshToken:
        """
        Persist a new active refresh token.

        Args:
            user_id: Owner of the token
            token: Signed refresh token string
            expires_at: Expiry copied from the token lifetime

        Returns:
            Stored refresh token
        """
        return await self._repository.save_refresh_token(
            RefreshToken(token=token, user_id=user_id, expires_at=expires_at)
        )

    async def issue(self, user_id: int, email: str) -> TokenPair:
        """Mint a token pair and store its refresh half."""
        pair = self._token_codec.issue_pair(user_id, email)
        await self.store(user_id, pair.refresh_token, self._token_codec.refresh_expires_at())
        return pair

    async def rotate(self, old_token: str) -> Optional[TokenPair]:
        """
        Exchange a refresh token for a new access and refresh pair.

        Args:
            old_token: Refresh token presented by the client

        Returns:
            New token pair, or None if the token is invalid, unknown,
            revoked, expired, or was rotated concurrently
        """
        payload = self._token_codec.verify_refresh_token(old_token)
        if payload is None:
            return None

        now = self._clock()
        stored = await self._repository.get_refresh_token(old_token)
        if stored is None:
            logger.warning(f"Refresh attempted with unknown token for user {payload.user_id}")
            return None
        if stored.is_revoked:
            logger.warning(f"Replay of revoked refresh token for user {stored.user_id}")
            return None
        if stored.is_expired(now):
            return None

        if not await self._repository.revoke_if_active(old_token, now):
            logger.warning(f"Concurrent rotation lost for user {stored.user_id}")
            return None

        pair = await self.issue(payload.user_id, payload.email)
        logger.info(f"Refresh token rotated for user {payload.user_id}")
        return pair

    async def revoke(self, token: str) -> None:
        """Revoke one refresh token. Absent or already revoked tokens are ignored."""
        await self._repository.revoke_token(token, self._clock())

    async def revoke_all(self, user_id: int) -> int:
        """
        Revoke every active refresh token of a user.

        Returns:
            Number of tokens revoked
        """
        revoked = await self._repository.revoke_user_tokens(user_id, self._clock())
        logger.info(f"Revoked {revoked} refresh tokens for user {user_id}")
        return revoked

    async def sweep_expired(self) -> int:
        """Delete expired refresh tokens regardless of revocation state."""
        return await self._repository.delete_expired(self._clock())
