import asyncio
import time

import pytest

from scout_core.rate_limiter import RateLimiter


@pytest.mark.asyncio
async def test_rate_limiter_initialization():
    limiter = RateLimiter(requests_per_second=2.0)
    assert limiter.interval == 0.5
    assert limiter.last_call is None

    assert RateLimiter(requests_per_second=0).interval == 0.0


@pytest.mark.asyncio
async def test_rate_limiter_acquire_wait():
    # 10 calls per second = 0.1s interval
    limiter = RateLimiter(requests_per_second=10.0)

    start = time.monotonic()
    await limiter.acquire()
    t1 = time.monotonic()
    await limiter.acquire()
    t2 = time.monotonic()

    # First call is immediate, the second waits out the interval
    assert (t1 - start) < 0.05
    assert (t2 - t1) >= 0.09


@pytest.mark.asyncio
async def test_rate_limiter_concurrency():
    limiter = RateLimiter(requests_per_second=20.0)  # 0.05s interval

    async def worker():
        await limiter.acquire()
        return time.monotonic()

    results = sorted(await asyncio.gather(worker(), worker(), worker()))

    # 1st: instant, 2nd: +0.05s, 3rd: +0.10s
    assert (results[2] - results[0]) >= 0.09
