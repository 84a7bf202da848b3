import asyncio
import time
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from fakeredis import aioredis as fake_aioredis

from src.adapter.repositories.redis_rate_limit_repository import RedisRateLimitRepository
from src.adapter.repositories.redis_session_repository import RedisSessionRepository
from src.domain.entities import RateLimitPolicy, Session


@pytest_asyncio.fixture
async def redis_client():
    client = fake_aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


def make_session(session_id: str, user_id: str = "user-1") -> Session:
    return Session(
        session_id=session_id,
        user_id=user_id,
        device_id="device-1",
        ip_address="10.0.0.1",
        user_agent="pytest-agent",
    )


@pytest.mark.asyncio
async def test_session_save_get_and_list(redis_client):
    repository = RedisSessionRepository(redis_client)
    await repository.save(make_session("s1"), 3600)
    await repository.save(make_session("s2"), 3600)

    session = await repository.get("s1")
    assert session.user_id == "user-1"
    assert session.ip_address == "10.0.0.1"

    sessions = await repository.list_by_user("user-1")
    assert {s.session_id for s in sessions} == {"s1", "s2"}


@pytest.mark.asyncio
async def test_session_touch(redis_client):
    repository = RedisSessionRepository(redis_client)
    await repository.save(make_session("s1"), 3600)
    later = datetime.now(UTC) + timedelta(minutes=10)

    assert await repository.touch("s1", later) is True
    assert await repository.touch("missing", later) is False
    assert (await repository.get("s1")).last_activity_at == later


@pytest.mark.asyncio
async def test_session_delete_leaves_tombstone(redis_client):
    repository = RedisSessionRepository(redis_client)
    await repository.save(make_session("s1"), 3600)

    deleted = await repository.delete("s1", 3600)

    assert deleted.session_id == "s1"
    assert await repository.get("s1") is None
    assert await repository.is_revoked("s1") is True
    assert await repository.list_by_user("user-1") == []


@pytest.mark.asyncio
async def test_session_save_clears_tombstone(redis_client):
    repository = RedisSessionRepository(redis_client)
    await repository.delete("s1", 3600)

    await repository.save(make_session("s1"), 3600)

    assert await repository.is_revoked("s1") is False


@pytest.mark.asyncio
async def test_session_delete_all_for_user(redis_client):
    repository = RedisSessionRepository(redis_client)
    for session_id in ("s1", "s2", "s3"):
        await repository.save(make_session(session_id), 3600)
    await repository.save(make_session("other", user_id="user-2"), 3600)

    assert await repository.delete_all_for_user("user-1", 3600) == 3
    assert await repository.list_by_user("user-1") == []
    assert await repository.is_revoked("s2") is True
    assert await repository.get("other") is not None


@pytest.mark.asyncio
async def test_session_purge_idle(redis_client):
    repository = RedisSessionRepository(redis_client)
    await repository.save(make_session("idle"), 3600)
    await repository.touch("idle", datetime.now(UTC) - timedelta(minutes=30))
    await repository.save(make_session("active"), 3600)

    purged = await repository.purge_idle(datetime.now(UTC) - timedelta(minutes=5), 3600)

    assert purged == 1
    assert await repository.is_revoked("idle") is True
    assert await repository.get("active") is not None


@pytest.mark.asyncio
async def test_rate_limit_hit_and_block(redis_client):
    repository = RedisRateLimitRepository(redis_client)
    policy = RateLimitPolicy(max_attempts=3, window_seconds=60, block_seconds=120, name="test")
    now = 1_700_000_000.25

    decisions = [await repository.hit("test:ip", policy, now) for _ in range(3)]
    assert [d.remaining for d in decisions] == [2, 1, 0]
    assert all(d.allowed for d in decisions)

    blocked = await repository.hit("test:ip", policy, now)
    assert blocked.allowed is False
    assert blocked.retry_after == 120
    assert blocked.blocked_until == now + 120

    still_blocked = await repository.hit("test:ip", policy, now + 61)
    assert still_blocked.allowed is False
    assert still_blocked.retry_after == 59


@pytest.mark.asyncio
async def test_rate_limit_peek_and_clear(redis_client):
    repository = RedisRateLimitRepository(redis_client)
    policy = RateLimitPolicy(max_attempts=3, window_seconds=60, block_seconds=120, name="test")
    now = time.time()

    fresh = await repository.peek("test:ip", policy, now)
    assert fresh.remaining == 3

    await repository.hit("test:ip", policy, now)
    await repository.hit("test:ip", policy, now)
    assert (await repository.peek("test:ip", policy, now)).remaining == 1

    await repository.clear("test:ip")
    await repository.clear("test:ip")
    assert (await repository.peek("test:ip", policy, now)).remaining == 3


@pytest.mark.asyncio
async def test_session_restore_refused_after_revocation(redis_client):
    repository = RedisSessionRepository(redis_client)
    assert await repository.restore(make_session("s1"), 3600) is True
    assert (await repository.get("s1")).user_id == "user-1"

    await repository.delete_all_for_user("user-1", 3600)
    assert await repository.restore(make_session("s1"), 3600) is False
    assert await repository.get("s1") is None
    assert await repository.is_revoked("s1") is True
    assert await repository.list_by_user("user-1") == []


@pytest.mark.asyncio
async def test_rate_limit_concurrent_hits_allow_exactly_max(redis_client):
    repository = RedisRateLimitRepository(redis_client)
    policy = RateLimitPolicy(max_attempts=5, window_seconds=60, block_seconds=120, name="test")
    now = time.time()

    decisions = await asyncio.gather(
        *(repository.hit("test:burst", policy, now) for _ in range(policy.max_attempts + 1))
    )

    assert sum(d.allowed for d in decisions) == policy.max_attempts
    assert (await repository.peek("test:burst", policy, now)).allowed is False
