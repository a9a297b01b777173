"""Tests for the minimum-interval rate limiter."""

from __future__ import annotations

from paperlens.integrations.rate_limit import RateLimiter


class _FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_first_call_never_waits() -> None:
    clock = _FakeClock()
    limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)
    assert limiter.wait() == 0.0
    assert clock.sleeps == []


def test_waits_for_remaining_interval() -> None:
    clock = _FakeClock()
    limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)
    limiter.wait()
    clock.now += 0.25
    assert limiter.wait() == 0.75
    assert clock.sleeps == [0.75]
    # The slept call counts as the most recent one.
    assert limiter.wait() == 1.0


def test_no_wait_after_interval_elapsed() -> None:
    clock = _FakeClock()
    limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)
    limiter.wait()
    clock.now += 2.0
    assert limiter.wait() == 0.0
    assert clock.sleeps == []


def test_zero_interval_disables_waiting() -> None:
    clock = _FakeClock()
    limiter = RateLimiter(0.0, clock=clock, sleep=clock.sleep)
    for _ in range(3):
        assert limiter.wait() == 0.0
    assert clock.sleeps == []
    assert RateLimiter(-5).min_interval_seconds == 0.0
