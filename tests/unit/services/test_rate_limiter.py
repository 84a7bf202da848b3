import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from src.adapter.repositories.memory_rate_limit_repository import InMemoryRateLimitRepository
from src.app.services.rate_limiter import RateLimiter
from src.domain.entities import RateLimitPolicy


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    policy = RateLimitPolicy(max_attempts=5, window_seconds=900, block_seconds=1800, name="login")
    return RateLimiter(policy, InMemoryRateLimitRepository(), clock=clock)


@pytest.mark.asyncio
async def test_allows_up_to_max_attempts(limiter):
    for expected_remaining in (4, 3, 2, 1, 0):
        decision = await limiter.check("198.51.100.1")
        assert decision.allowed is True
        assert decision.remaining == expected_remaining
        assert decision.limit == 5


@pytest.mark.asyncio
async def test_sixth_attempt_blocks_for_block_duration(limiter):
    for _ in range(5):
        await limiter.check("198.51.100.1")

    decision = await limiter.check("198.51.100.1")

    assert decision.allowed is False
    assert decision.remaining == 0
    assert decision.retry_after == 1800


@pytest.mark.asyncio
async def test_block_outlives_window(limiter, clock):
    for _ in range(6):
        await limiter.check("198.51.100.1")

    clock.advance(901)
    decision = await limiter.check("198.51.100.1")
    assert decision.allowed is False
    assert decision.retry_after == 899

    clock.advance(900)
    decision = await limiter.check("198.51.100.1")
    assert decision.allowed is True
    assert decision.remaining == 4


@pytest.mark.asyncio
async def test_window_rolls_over(limiter, clock):
    for _ in range(5):
        await limiter.check("198.51.100.1")

    clock.advance(900)
    decision = await limiter.check("198.51.100.1")

    assert decision.allowed is True
    assert decision.remaining == 4


@pytest.mark.asyncio
async def test_keys_are_independent(limiter):
    for _ in range(6):
        await limiter.check("198.51.100.1")

    decision = await limiter.check("198.51.100.2")

    assert decision.allowed is True


@pytest.mark.asyncio
async def test_reset_clears_window_and_is_idempotent(limiter):
    for _ in range(4):
        await limiter.check("198.51.100.1")

    await limiter.reset("198.51.100.1")
    await limiter.reset("198.51.100.1")
    await limiter.reset("never-seen")

    decision = await limiter.check("198.51.100.1")
    assert decision.remaining == 4


@pytest.mark.asyncio
async def test_reset_does_not_lift_block(limiter):
    for _ in range(6):
        await limiter.check("198.51.100.1")

    await limiter.reset("198.51.100.1")

    decision = await limiter.status("198.51.100.1")
    assert decision.allowed is False


@pytest.mark.asyncio
async def test_status_does_not_count(limiter):
    await limiter.check("198.51.100.1")

    for _ in range(3):
        decision = await limiter.status("198.51.100.1")

    assert decision.remaining == 4


@pytest.mark.asyncio
async def test_purge_expired(limiter, clock):
    await limiter.check("a")
    for _ in range(6):
        await limiter.check("b")

    assert await limiter.purge_expired() == 0

    clock.advance(1801)
    assert await limiter.purge_expired() == 2


@pytest.mark.parametrize(
    "max_attempts,window,block",
    [(0, 60, 120), (5, 0, 120), (5, 900, 900), (5, 900, 600)],
)
def test_invalid_policy_rejected(max_attempts, window, block):
    with pytest.raises(ValueError):
        RateLimitPolicy(max_attempts=max_attempts, window_seconds=window, block_seconds=block)


@pytest.mark.asyncio
async def test_concurrent_checks_allow_exactly_max(limiter):
    decisions = await asyncio.gather(*(limiter.check("198.51.100.9") for _ in range(6)))

    assert sum(d.allowed for d in decisions) == 5
    assert [d.retry_after for d in decisions if not d.allowed] == [1800]


def test_threaded_checks_allow_exactly_max(limiter):
    barrier = threading.Barrier(12)

    def attempt():
        barrier.wait()
        return asyncio.run(limiter.check("198.51.100.10")).allowed

    with ThreadPoolExecutor(max_workers=12) as pool:
        results = list(pool.map(lambda _: attempt(), range(12)))

    assert results.count(True) == 5
    assert results.count(False) == 7
