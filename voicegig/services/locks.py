# voicegig/services/locks.py
from contextlib import contextmanager
from typing import Optional
import logging

from redis import Redis
from redis.exceptions import LockError

from voicegig.utils.exceptions import PayoutInProgressError

logger = logging.getLogger(__name__)

# Covers one ledger write plus both provider round trips after a refresh
LOCK_TIMEOUT_SECONDS = 180
LOCK_WAIT_SECONDS = 5


class HeldLock:
    """Handle for a held payout lock. ``refresh`` restarts its expiry."""

    def __init__(self, user_id: str, lock=None):
        self.user_id = user_id
        self.lock = lock

    def refresh(self) -> None:
        if self.lock is None:
            return
        try:
            self.lock.extend(LOCK_TIMEOUT_SECONDS, replace_ttl=True)
        except LockError:
            logger.warning(f"Payout lock for user {self.user_id} expired before the debit")
            raise PayoutInProgressError("A payout is already in progress")


class PayoutLocks:
    """
    Per-user mutual exclusion around the balance check + debit of a payout.
    Without Redis every lock is a no-op.
    """

    def __init__(self, redis_client: Optional[Redis] = None):
        self.redis = redis_client

    @classmethod
    def from_url(cls, url: Optional[str]) -> "PayoutLocks":
        return cls(Redis.from_url(url) if url else None)

    @contextmanager
    def for_user(self, user_id: str):
        if self.redis is None:
            yield HeldLock(user_id)
            return

        lock = self.redis.lock(
            f"payout_lock:{user_id}",
            timeout=LOCK_TIMEOUT_SECONDS,
            blocking_timeout=LOCK_WAIT_SECONDS,
        )
        if not lock.acquire():
            logger.warning(f"Payout lock busy for user {user_id}")
            raise PayoutInProgressError("A payout is already in progress")
        try:
            yield HeldLock(user_id, lock)
        finally:
            try:
                lock.release()
            except LockError:
                logger.warning(f"Payout lock for user {user_id} expired before release")
