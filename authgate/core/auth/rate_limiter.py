"""Fixed-window request throttle."""

import logging
from datetime import timedelta

from authgate.utils.clock import Clock, utcnow
from .entities import RateLimitResult
from .interfaces import RateLimitRepositoryInterface

logger = logging.getLogger("authgate.auth.rate_limit")


class RateLimiter:
    """
    Fixed-window counter keyed by identifier and endpoint.

    Windows do not slide: a burst straddling a window boundary can be admitted
    up to twice the cap.
    """

    def __init__(
        self,
        rate_limit_repository: RateLimitRepositoryInterface,
        max_requests: int = 5,
        window: timedelta = timedelta(seconds=60),
        clock: Clock = utcnow,
    ) -> None:
        """
        Initialize rate limiter.

        Args:
            rate_limit_repository: Window counter storage
            max_requests: Requests allowed per window
            window: Window length
            clock: Source of the current naive UTC time
        """
        self._repository = rate_limit_repository
        self._max_requests = max_requests
        self._window = window
        self._clock = clock

    @property
    def max_requests(self) -> int:
        return self._max_requests

    async def check_rate_limit(self, identifier: str, endpoint: str) -> RateLimitResult:
        """
        Count one request and decide whether it is allowed.

        Stale windows of every key are deleted first. The first request of a
        window is always allowed.

        Args:
            identifier: Caller identity, usually the client IP
            endpoint: Logical endpoint name

        Returns:
            Verdict with remaining requests and window reset time
        """
        now = self._clock()
        cutoff = now - self._window

        await self._repository.delete_windows_before(cutoff)

        existing = await self._repository.find_window(identifier, endpoint, cutoff)
        if existing is not None:
            count = await self._repository.increment(existing.id)
            if count is not None:
                allowed = count <= self._max_requests
                if not allowed:
                    logger.warning(f"Rate limit exceeded for {identifier} on {endpoint}")
                return RateLimitResult(
                    allowed=allowed,
                    remaining=max(0, self._max_requests - count),
                    reset_at=existing.window_start + self._window,
                    limit=self._max_requests,
                )

        await self._repository.create_window(identifier, endpoint, now)
        return RateLimitResult(
            allowed=True,
            remaining=max(0, self._max_requests - 1),
            reset_at=now + self._window,
            limit=self._max_requests,
        )

    async def sweep(self) -> int:
        """Delete windows older than the window length."""
        return await self._repository.delete_windows_before(self._clock() - self._window)
