"""Storage reclamation for expired auth state."""

import logging
from typing import Dict

from .rate_limiter import RateLimiter
from .revocation import RevocationRegistry
from .rotation import RefreshRotationEngine

logger = logging.getLogger("authgate.auth.sweeper")


class StorageSweeper:
    """Deletes expired refresh tokens, blacklist entries and rate limit windows."""

    def __init__(
        self,
        rotation_engine: RefreshRotationEngine,
        revocation_registry: RevocationRegistry,
        rate_limiter: RateLimiter,
    ) -> None:
        self._rotation_engine = rotation_engine
        self._revocation_registry = revocation_registry
        self._rate_limiter = rate_limiter

    async def sweep(self) -> Dict[str, int]:
        """
        Run every sweep once.

        Returns:
            Number of rows removed per store
        """
        report = {
            "refresh_tokens": await self._rotation_engine.sweep_expired(),
            "blacklisted_tokens": await self._revocation_registry.sweep_expired(),
            "rate_limit_windows": await self._rate_limiter.sweep(),
        }
        logger.info(f"Storage sweep completed: {report}")
        return report
