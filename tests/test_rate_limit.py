import pytest

from uniboard.auth.rate_limit import InMemoryLoginRateLimiter, NoopLoginRateLimiter
from uniboard.core.errors import RateLimitedError


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return InMemoryLoginRateLimiter(max_attempts=3, window=60, clock=clock)


async def test_allows_up_to_limit(limiter):
    results = [await limiter.check("1.2.3.4") for _ in range(3)]
    assert all(r.allowed for r in results)
    assert [r.remaining for r in results] == [2, 1, 0]

    blocked = await limiter.check("1.2.3.4")
    assert not blocked.allowed
    assert blocked.retry_after is not None and blocked.retry_after > 0


async def test_keys_are_independent(limiter):
    for _ in range(3):
        await limiter.check("1.2.3.4")
    assert not (await limiter.check("1.2.3.4")).allowed
    assert (await limiter.check("5.6.7.8")).allowed


async def test_window_resets_after_quiet_period(limiter, clock):
    for _ in range(3):
        await limiter.check("1.2.3.4")
    assert not (await limiter.check("1.2.3.4")).allowed

    clock.now += 61
    result = await limiter.check("1.2.3.4")
    assert result.allowed
    assert result.remaining == 2


async def test_reset_and_clear(limiter):
    for _ in range(3):
        await limiter.check("a")
        await limiter.check("b")

    await limiter.reset("a")
    assert (await limiter.check("a")).allowed
    assert not (await limiter.check("b")).allowed

    await limiter.clear()
    assert (await limiter.check("b")).allowed


async def test_hit_raises_when_blocked(limiter):
    for _ in range(3):
        await limiter.hit("1.2.3.4")

    with pytest.raises(RateLimitedError) as exc_info:
        await limiter.hit("1.2.3.4")
    assert exc_info.value.status_code == 429
    assert "Retry-After" in exc_info.value.headers


async def test_noop_limiter_never_blocks():
    limiter = NoopLoginRateLimiter()
    for _ in range(100):
        await limiter.hit("1.2.3.4")


async def test_stale_keys_are_dropped(limiter, clock):
    for i in range(10):
        await limiter.check(f"10.0.0.{i}")
    assert len(limiter._attempts) == 10

    clock.now += 61
    await limiter.check("1.2.3.4")
    assert list(limiter._attempts) == ["1.2.3.4"]
