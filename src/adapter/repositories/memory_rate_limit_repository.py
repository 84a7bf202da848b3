"""
In-process rate-limit store.

Keys are spread over a fixed set of lock stripes so that attempts for one
key serialize while unrelated keys proceed in parallel.
"""

import math
import threading
import zlib
from typing import Dict, List

from src.app.repositories.rate_limit_repository import IRateLimitRepository
from src.domain.entities import RateLimitDecision, RateLimitEntry, RateLimitPolicy


class InMemoryRateLimitRepository(IRateLimitRepository):
    def __init__(self, stripes: int = 64):
        self._entries: Dict[str, RateLimitEntry] = {}
        self._blocks: Dict[str, float] = {}
        self._locks: List[threading.Lock] = [threading.Lock() for _ in range(stripes)]

    def _lock_for(self, key: str) -> threading.Lock:
        return self._locks[zlib.crc32(key.encode()) % len(self._locks)]

    @staticmethod
    def _blocked(policy: RateLimitPolicy, blocked_until: float, now: float) -> RateLimitDecision:
        return RateLimitDecision(
            allowed=False,
            limit=policy.max_attempts,
            remaining=0,
            reset_at=blocked_until,
            retry_after=max(1, math.ceil(blocked_until - now)),
            blocked_until=blocked_until,
        )

    async def hit(self, key: str, policy: RateLimitPolicy, now: float) -> RateLimitDecision:
        with self._lock_for(key):
            blocked_until = self._blocks.get(key)
            if blocked_until is not None:
                if blocked_until > now:
                    return self._blocked(policy, blocked_until, now)
                del self._blocks[key]

            entry = self._entries.get(key)
            if entry is None or now >= entry.reset_at:
                entry = RateLimitEntry(
                    key=key, count=0, reset_at=now + policy.window_seconds, first_attempt_at=now
                )
                self._entries[key] = entry
            entry.count += 1

            if entry.count > policy.max_attempts:
                blocked_until = now + policy.block_seconds
                self._blocks[key] = blocked_until
                del self._entries[key]
                return RateLimitDecision(
                    allowed=False,
                    limit=policy.max_attempts,
                    remaining=0,
                    reset_at=blocked_until,
                    retry_after=policy.block_seconds,
                    blocked_until=blocked_until,
                )

            return RateLimitDecision(
                allowed=True,
                limit=policy.max_attempts,
                remaining=policy.max_attempts - entry.count,
                reset_at=entry.reset_at,
            )

    async def peek(self, key: str, policy: RateLimitPolicy, now: float) -> RateLimitDecision:
        with self._lock_for(key):
            blocked_until = self._blocks.get(key)
            if blocked_until is not None and blocked_until > now:
                return self._blocked(policy, blocked_until, now)
            entry = self._entries.get(key)
            if entry is None or now >= entry.reset_at:
                return RateLimitDecision(
                    allowed=True,
                    limit=policy.max_attempts,
                    remaining=policy.max_attempts,
                    reset_at=now + policy.window_seconds,
                )
            return RateLimitDecision(
                allowed=entry.count < policy.max_attempts,
                limit=policy.max_attempts,
                remaining=max(0, policy.max_attempts - entry.count),
                reset_at=entry.reset_at,
            )

    async def clear(self, key: str) -> None:
        with self._lock_for(key):
            self._entries.pop(key, None)

    async def purge_expired(self, now: float) -> int:
        removed = 0
        for key, entry in list(self._entries.items()):
            with self._lock_for(key):
                current = self._entries.get(key)
                if current is entry and now >= entry.reset_at:
                    del self._entries[key]
                    removed += 1
        for key, blocked_until in list(self._blocks.items()):
            with self._lock_for(key):
                if self._blocks.get(key) == blocked_until and blocked_until <= now:
                    del self._blocks[key]
                    removed += 1
        return removed
