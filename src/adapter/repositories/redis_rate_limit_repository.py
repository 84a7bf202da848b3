"""
Redis-backed rate-limit store with the same atomicity as the in-memory one.

Layout:
    ratelimit:window:{key} hash count/reset_at/first_attempt_at, expires with the window
    ratelimit:block:{key}  unblock epoch, expires with the block
"""

import math

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.app.repositories.rate_limit_repository import IRateLimitRepository
from src.domain.entities import RateLimitDecision, RateLimitPolicy
from src.domain.errors import StoreUnavailableError

WINDOW_PREFIX = "ratelimit:window:"
BLOCK_PREFIX = "ratelimit:block:"


class RedisRateLimitRepository(IRateLimitRepository):
    # Returns {allowed, count, reset_at, blocked_until, retry_after}
    _HIT_SCRIPT = """
local now = tonumber(ARGV[1])
local max_attempts = tonumber(ARGV[2])
local window = tonumber(ARGV[3])
local block = tonumber(ARGV[4])

local blocked_until = tonumber(redis.call('GET', KEYS[2]))
if blocked_until and blocked_until > now then
  return {0, 0, string.format('%.6f', blocked_until), string.format('%.6f', blocked_until), math.max(1, math.ceil(blocked_until - now))}
end

local data = redis.call('HMGET', KEYS[1], 'count', 'reset_at')
local count = tonumber(data[1])
local reset_at = tonumber(data[2])
if count == nil or reset_at == nil or now >= reset_at then
  count = 1
  reset_at = now + window
  redis.call('DEL', KEYS[1])
  redis.call('HSET', KEYS[1], 'count', count, 'reset_at', string.format('%.6f', reset_at), 'first_attempt_at', string.format('%.6f', now))
  redis.call('EXPIRE', KEYS[1], math.ceil(window))
else
  count = redis.call('HINCRBY', KEYS[1], 'count', 1)
end

if count > max_attempts then
  local until_ts = now + block
  redis.call('SET', KEYS[2], string.format('%.6f', until_ts), 'EX', math.ceil(block))
  redis.call('DEL', KEYS[1])
  return {0, count, string.format('%.6f', until_ts), string.format('%.6f', until_ts), block}
end
return {1, count, string.format('%.6f', reset_at), '', 0}
"""

    def __init__(self, client: aioredis.Redis):
        self.client = client
        self._hit = client.register_script(self._HIT_SCRIPT)

    async def hit(self, key: str, policy: RateLimitPolicy, now: float) -> RateLimitDecision:
        try:
            allowed, count, reset_at, blocked_until, retry_after = await self._hit(
                keys=[WINDOW_PREFIX + key, BLOCK_PREFIX + key],
                args=[now, policy.max_attempts, policy.window_seconds, policy.block_seconds],
            )
        except RedisError as exc:
            raise StoreUnavailableError("Rate-limit store unavailable") from exc

        if int(allowed):
            return RateLimitDecision(
                allowed=True,
                limit=policy.max_attempts,
                remaining=max(0, policy.max_attempts - int(count)),
                reset_at=float(reset_at),
            )
        return RateLimitDecision(
            allowed=False,
            limit=policy.max_attempts,
            remaining=0,
            reset_at=float(reset_at),
            retry_after=int(retry_after),
            blocked_until=float(blocked_until),
        )

    async def peek(self, key: str, policy: RateLimitPolicy, now: float) -> RateLimitDecision:
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.get(BLOCK_PREFIX + key)
                pipe.hmget(WINDOW_PREFIX + key, "count", "reset_at")
                blocked_until, (count, reset_at) = await pipe.execute()
        except RedisError as exc:
            raise StoreUnavailableError("Rate-limit store unavailable") from exc

        if blocked_until is not None and float(blocked_until) > now:
            blocked_until = float(blocked_until)
            return RateLimitDecision(
                allowed=False,
                limit=policy.max_attempts,
                remaining=0,
                reset_at=blocked_until,
                retry_after=max(1, math.ceil(blocked_until - now)),
                blocked_until=blocked_until,
            )
        if count is None or reset_at is None or now >= float(reset_at):
            return RateLimitDecision(
                allowed=True,
                limit=policy.max_attempts,
                remaining=policy.max_attempts,
                reset_at=now + policy.window_seconds,
            )
        return RateLimitDecision(
            allowed=int(count) < policy.max_attempts,
            limit=policy.max_attempts,
            remaining=max(0, policy.max_attempts - int(count)),
            reset_at=float(reset_at),
        )

    async def clear(self, key: str) -> None:
        try:
            await self.client.delete(WINDOW_PREFIX + key)
        except RedisError as exc:
            raise StoreUnavailableError("Rate-limit store unavailable") from exc

    async def purge_expired(self, now: float) -> int:
        # Redis expires windows and blocks itself
        return 0
