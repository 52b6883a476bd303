"""
Token Bucket Unit Tests

Uses a fake clock and sleep so pacing is checked without real waiting.
"""

import pytest

from bra3n.services.rate_limit import TokenBucket


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.mark.asyncio
async def test_first_acquire_is_immediate():
    clock = FakeClock()
    bucket = TokenBucket(rate=10, capacity=1, clock=clock, sleep=clock.sleep)

    await bucket.acquire()

    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_sequential_acquires_are_paced():
    clock = FakeClock()
    bucket = TokenBucket(rate=4, capacity=1, clock=clock, sleep=clock.sleep)

    for _ in range(4):
        await bucket.acquire()

    # 3 waits of 1/rate seconds after the initial token
    assert clock.sleeps == pytest.approx([0.25, 0.25, 0.25])
    assert clock.now == pytest.approx(0.75)


@pytest.mark.asyncio
async def test_burst_capacity():
    clock = FakeClock()
    bucket = TokenBucket(rate=2, capacity=3, clock=clock, sleep=clock.sleep)

    for _ in range(3):
        await bucket.acquire()
    assert clock.sleeps == []

    await bucket.acquire()
    assert clock.sleeps == pytest.approx([0.5])


@pytest.mark.asyncio
async def test_idle_time_refills_bucket():
    clock = FakeClock()
    bucket = TokenBucket(rate=10, capacity=1, clock=clock, sleep=clock.sleep)

    await bucket.acquire()
    clock.now += 1.0
    await bucket.acquire()

    assert clock.sleeps == []


@pytest.mark.parametrize("rate,capacity", [(0, 1), (-1, 1), (1, 0)])
def test_invalid_arguments(rate, capacity):
    with pytest.raises(ValueError):
        TokenBucket(rate=rate, capacity=capacity)
