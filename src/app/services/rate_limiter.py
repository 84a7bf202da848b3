"""
Rate Limiter

Fixed-window attempt counter with an escalating block, keyed by client
address or any caller-chosen key.
"""

import logging
import time
from typing import Callable

from src.app.repositories.rate_limit_repository import IRateLimitRepository
from src.domain.entities import RateLimitDecision, RateLimitPolicy

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Gate for one class of attempts (login, register, 2FA verify).

    Business Rules:
    - Every check() counts an attempt, successful or not
    - The (max_attempts + 1)th attempt inside a window blocks the key for
      block_seconds; while blocked every call is rejected even if the
      original window has rolled over
    - reset() clears the window after a successful authentication and is a
      no-op for unknown keys
    """

    def __init__(
        self,
        policy: RateLimitPolicy,
        repository: IRateLimitRepository,
        clock: Callable[[], float] = time.time,
    ):
        self.policy = policy
        self.repository = repository
        self.clock = clock

    def _key(self, key: str) -> str:
        return f"{self.policy.name}:{key}"

    async def check(self, key: str) -> RateLimitDecision:
        decision = await self.repository.hit(self._key(key), self.policy, self.clock())
        if not decision.allowed and decision.retry_after == self.policy.block_seconds:
            logger.warning(
                f"Rate limit '{self.policy.name}' exceeded for {key}; "
                f"blocked for {self.policy.block_seconds}s"
            )
        return decision

    async def status(self, key: str) -> RateLimitDecision:
        return await self.repository.peek(self._key(key), self.policy, self.clock())

    async def reset(self, key: str) -> None:
        await self.repository.clear(self._key(key))

    async def purge_expired(self) -> int:
        return await self.repository.purge_expired(self.clock())
