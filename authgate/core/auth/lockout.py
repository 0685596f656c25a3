"""Account lockout after repeated failed logins."""

import logging
from datetime import timedelta

from authgate.core.exceptions import InternalException
from authgate.utils.clock import Clock, utcnow
from .entities import LockoutStatus
from .interfaces import AccountLockoutRepositoryInterface, UserRepositoryInterface

logger = logging.getLogger("authgate.auth.lockout")

LOCK_REASON_FAILED_ATTEMPTS = "too_many_failed_attempts"


class AccountLockoutGuard:
    """
    Per-user failed attempt counter with a temporary lock.

    An expired lock is reconciled lazily by the next ``is_locked`` call, which
    clears it and zeroes the counter.
    """

    def __init__(
        self,
        user_repository: UserRepositoryInterface,
        lockout_repository: AccountLockoutRepositoryInterface,
        max_attempts: int = 5,
        lock_duration: timedelta = timedelta(minutes=15),
        clock: Clock = utcnow,
    ) -> None:
        """
        Initialize lockout guard.

        Args:
            user_repository: User storage holding counter and lock expiry
            lockout_repository: Append-only lock audit log
            max_attempts: Failures that trigger a lock
            lock_duration: How long a lock lasts
            clock: Source of the current naive UTC time
        """
        self._user_repository = user_repository
        self._lockout_repository = lockout_repository
        self._max_attempts = max_attempts
        self._lock_duration = lock_duration
        self._clock = clock

    async def is_locked(self, user_id: int) -> bool:
        """Check whether the account is locked right now."""
        user = await self._user_repository.get_user_by_id(user_id)
        if user is None or user.locked_until is None:
            return False

        now = self._clock()
        if user.locked_until > now:
            return True

        await self._user_repository.clear_expired_lock(user_id, now)
        logger.info(f"Lock expired for user {user_id}")
        return False

    async def record_failed_attempt(self, user_id: int) -> LockoutStatus:
        """
        Count a failed login and lock the account at the threshold.

        Raises:
            InternalException: If the user does not exist
        """
        attempts = await self._user_repository.increment_failed_attempts(user_id)
        if attempts is None:
            raise InternalException(f"Cannot record failed login for missing user {user_id}")

        if attempts >= self._max_attempts:
            locked_until = self._clock() + self._lock_duration
            await self._user_repository.set_lock(user_id, locked_until)
            await self._lockout_repository.record(user_id, locked_until, LOCK_REASON_FAILED_ATTEMPTS)
            logger.warning(f"User {user_id} locked until {locked_until.isoformat()} after {attempts} failed attempts")
            return LockoutStatus(locked=True, attempts_remaining=0, locked_until=locked_until)

        return LockoutStatus(locked=False, attempts_remaining=self._max_attempts - attempts)

    async def reset(self, user_id: int) -> None:
        """Zero the counter and clear any lock after a successful login."""
        await self._user_repository.clear_lock(user_id)
