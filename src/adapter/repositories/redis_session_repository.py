"""
Redis-backed session store for multi-instance deployments.

Layout:
    auth:session:{session_id}        hash, expires with the refresh lifetime
    auth:user_sessions:{user_id}     set of session ids
    auth:session_revoked:{session_id} tombstone
    auth:session_activity            zset session_id -> last activity epoch
"""

import time
from datetime import UTC, datetime
from typing import Dict, List, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.app.repositories.session_repository import ISessionRepository
from src.domain.entities import Session
from src.domain.errors import StoreUnavailableError

SESSION_PREFIX = "auth:session:"
USER_SESSIONS_PREFIX = "auth:user_sessions:"
TOMBSTONE_PREFIX = "auth:session_revoked:"
ACTIVITY_KEY = "auth:session_activity"


class RedisSessionRepository(ISessionRepository):
    """Sessions in Redis; multi-key updates run as Lua scripts"""

    _TOUCH_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
  return 0
end
redis.call('HSET', KEYS[1], 'last_activity_at', ARGV[1])
redis.call('ZADD', KEYS[2], ARGV[2], ARGV[3])
return 1
"""

    _RESTORE_SCRIPT = """
if redis.call('EXISTS', KEYS[2]) == 1 then
  return 0
end
redis.call('DEL', KEYS[1])
redis.call('HSET', KEYS[1], unpack(ARGV, 4))
redis.call('EXPIRE', KEYS[1], ARGV[1])
redis.call('SADD', KEYS[3], ARGV[2])
redis.call('EXPIRE', KEYS[3], ARGV[1])
redis.call('ZADD', KEYS[4], ARGV[3], ARGV[2])
return 1
"""

    _DELETE_SCRIPT = """
local data = redis.call('HGETALL', KEYS[1])
redis.call('DEL', KEYS[1])
redis.call('SET', KEYS[2], '1', 'EX', ARGV[1])
redis.call('ZREM', KEYS[3], ARGV[3])
for i = 1, #data, 2 do
  if data[i] == 'user_id' then
    redis.call('SREM', ARGV[2] .. data[i + 1], ARGV[3])
  end
end
return data
"""

    _DELETE_ALL_SCRIPT = """
local ids = redis.call('SMEMBERS', KEYS[1])
local count = 0
for _, sid in ipairs(ids) do
  count = count + redis.call('DEL', ARGV[1] .. sid)
  redis.call('SET', ARGV[2] .. sid, '1', 'EX', ARGV[3])
  redis.call('ZREM', KEYS[2], sid)
end
redis.call('DEL', KEYS[1])
return count
"""

    def __init__(self, client: aioredis.Redis):
        self.client = client
        self._touch = client.register_script(self._TOUCH_SCRIPT)
        self._restore = client.register_script(self._RESTORE_SCRIPT)
        self._delete = client.register_script(self._DELETE_SCRIPT)
        self._delete_all = client.register_script(self._DELETE_ALL_SCRIPT)

    @classmethod
    def from_url(cls, redis_url: str, socket_timeout: float = 5.0) -> "RedisSessionRepository":
        return cls(
            aioredis.from_url(
                redis_url,
                decode_responses=True,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_timeout,
            )
        )

    @staticmethod
    def _encode(session: Session) -> Dict[str, str]:
        data = session.model_dump(mode="json")
        return {key: "" if value is None else str(value) for key, value in data.items()}

    @staticmethod
    def _decode(data: Dict[str, str]) -> Optional[Session]:
        if not data:
            return None
        return Session(**{key: (value or None) for key, value in data.items()})

    async def save(self, session: Session, ttl_seconds: int) -> Session:
        key = SESSION_PREFIX + session.session_id
        user_key = USER_SESSIONS_PREFIX + session.user_id
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.delete(key)
                pipe.hset(key, mapping=self._encode(session))
                pipe.expire(key, ttl_seconds)
                pipe.delete(TOMBSTONE_PREFIX + session.session_id)
                pipe.sadd(user_key, session.session_id)
                pipe.expire(user_key, ttl_seconds)
                pipe.zadd(ACTIVITY_KEY, {session.session_id: session.last_activity_at.timestamp()})
                await pipe.execute()
        except RedisError as exc:
            raise StoreUnavailableError("Session store unavailable") from exc
        return session

    async def restore(self, session: Session, ttl_seconds: int) -> bool:
        fields = [item for pair in self._encode(session).items() for item in pair]
        try:
            result = await self._restore(
                keys=[
                    SESSION_PREFIX + session.session_id,
                    TOMBSTONE_PREFIX + session.session_id,
                    USER_SESSIONS_PREFIX + session.user_id,
                    ACTIVITY_KEY,
                ],
                args=[ttl_seconds, session.session_id, session.last_activity_at.timestamp(), *fields],
            )
        except RedisError as exc:
            raise StoreUnavailableError("Session store unavailable") from exc
        return bool(result)

    async def get(self, session_id: str) -> Optional[Session]:
        try:
            data = await self.client.hgetall(SESSION_PREFIX + session_id)
        except RedisError as exc:
            raise StoreUnavailableError("Session store unavailable") from exc
        return self._decode(data)

    async def list_by_user(self, user_id: str) -> List[Session]:
        user_key = USER_SESSIONS_PREFIX + user_id
        try:
            session_ids = await self.client.smembers(user_key)
            if not session_ids:
                return []
            async with self.client.pipeline(transaction=False) as pipe:
                for session_id in session_ids:
                    pipe.hgetall(SESSION_PREFIX + session_id)
                results = await pipe.execute()

            sessions, stale = [], []
            for session_id, data in zip(session_ids, results):
                session = self._decode(data)
                if session is None:
                    stale.append(session_id)
                else:
                    sessions.append(session)
            if stale:
                await self.client.srem(user_key, *stale)
            return sessions
        except RedisError as exc:
            raise StoreUnavailableError("Session store unavailable") from exc

    async def touch(self, session_id: str, at: datetime) -> bool:
        try:
            result = await self._touch(
                keys=[SESSION_PREFIX + session_id, ACTIVITY_KEY],
                args=[at.isoformat(), at.timestamp(), session_id],
            )
        except RedisError as exc:
            raise StoreUnavailableError("Session store unavailable") from exc
        return bool(result)

    async def delete(self, session_id: str, tombstone_ttl_seconds: int) -> Optional[Session]:
        try:
            flat = await self._delete(
                keys=[SESSION_PREFIX + session_id, TOMBSTONE_PREFIX + session_id, ACTIVITY_KEY],
                args=[tombstone_ttl_seconds, USER_SESSIONS_PREFIX, session_id],
            )
        except RedisError as exc:
            raise StoreUnavailableError("Session store unavailable") from exc
        return self._decode(dict(zip(flat[::2], flat[1::2])))

    async def delete_all_for_user(self, user_id: str, tombstone_ttl_seconds: int) -> int:
        try:
            count = await self._delete_all(
                keys=[USER_SESSIONS_PREFIX + user_id, ACTIVITY_KEY],
                args=[SESSION_PREFIX, TOMBSTONE_PREFIX, tombstone_ttl_seconds],
            )
        except RedisError as exc:
            raise StoreUnavailableError("Session store unavailable") from exc
        return int(count)

    async def is_revoked(self, session_id: str) -> bool:
        try:
            return bool(await self.client.exists(TOMBSTONE_PREFIX + session_id))
        except RedisError as exc:
            raise StoreUnavailableError("Session store unavailable") from exc

    async def purge_idle(
        self, idle_before: Optional[datetime], tombstone_ttl_seconds: int
    ) -> int:
        # Session hashes and tombstones expire on their own TTLs; only the
        # activity index needs sweeping.
        try:
            horizon = time.time() - tombstone_ttl_seconds
            await self.client.zremrangebyscore(ACTIVITY_KEY, "-inf", horizon)
            if idle_before is None:
                return 0

            idle_ids = await self.client.zrangebyscore(
                ACTIVITY_KEY, "-inf", idle_before.astimezone(UTC).timestamp()
            )
            purged = 0
            for session_id in idle_ids:
                if await self.delete(session_id, tombstone_ttl_seconds) is not None:
                    purged += 1
            return purged
        except RedisError as exc:
            raise StoreUnavailableError("Session store unavailable") from exc
