"""Access token blacklist."""

import logging
from datetime import timedelta

from authgate.utils.clock import Clock, from_timestamp, utcnow
from .interfaces import TokenBlacklistRepositoryInterface
from .token_codec import TokenCodec

logger = logging.getLogger("authgate.auth.revocation")


class RevocationRegistry:
    """
    Registry of access tokens rejected before their natural expiry.

    Each entry keeps the expiry copied from the token's own claims, so the
    entry is dropped lazily by the first lookup after that instant or by the
    periodic sweep. Refresh tokens are revoked on their own rows by the
    rotation engine and never pass through here.
    """

    def __init__(
        self,
        blacklist_repository: TokenBlacklistRepositoryInterface,
        token_codec: TokenCodec,
        clock: Clock = utcnow,
        fallback_ttl: timedelta = timedelta(days=7),
    ) -> None:
        """
        Initialize revocation registry.

        Args:
            blacklist_repository: Blacklist storage
            token_codec: Codec used to read the expiry claim
            clock: Source of the current naive UTC time
            fallback_ttl: Entry lifetime when the token carries no readable expiry
        """
        self._repository = blacklist_repository
        self._token_codec = token_codec
        self._clock = clock
        self._fallback_ttl = fallback_ttl

    async def blacklist_token(self, token: str) -> None:
        """
        Blacklist an access token until its own expiry.

        Tokens that have already expired are skipped, they are invalid anyway.
        """
        now = self._clock()
        claims = self._token_codec.decode_unverified(token)
        exp = claims.get("exp") if claims else None

        expires_at = now + self._fallback_ttl
        if isinstance(exp, (int, float)):
            try:
                expires_at = from_timestamp(exp)
            except (OverflowError, OSError, ValueError):
                logger.warning("Blacklisted token carries an out-of-range expiry")

        if expires_at <= now:
            return

        await self._repository.upsert(token, expires_at)
        logger.info("Access token blacklisted")

    async def is_token_blacklisted(self, token: str) -> bool:
        """
        Check whether an access token is blacklisted.

        An entry whose expiry has passed is deleted and reported as absent.
        """
        entry = await self._repository.get(token)
        if entry is None:
            return False

        if entry.expires_at < self._clock():
            await self._repository.delete(token)
            return False

        return True

    async def sweep_expired(self) -> int:
        """Delete every blacklist entry past its expiry."""
        return await self._repository.delete_expired(self._clock())
