"""Tests for the sliding-window rate limiter."""
from social_login.rate_limit import RateLimiter


class FakeTimer:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_allows_up_to_limit_then_blocks():
    timer = FakeTimer()
    limiter = RateLimiter(limit=3, window_seconds=60, timer=timer)
    assert [limiter.check_and_consume("1.2.3.4")[0] for _ in range(3)] == [True, True, True]
    allowed, retry_after = limiter.check_and_consume("1.2.3.4")
    assert allowed is False
    assert retry_after == 60


def test_window_slides():
    timer = FakeTimer()
    limiter = RateLimiter(limit=1, window_seconds=60, timer=timer)
    assert limiter.check_and_consume("ip")[0] is True
    timer.now += 30
    allowed, retry_after = limiter.check_and_consume("ip")
    assert allowed is False
    assert retry_after == 30
    timer.now += 31
    assert limiter.check_and_consume("ip") == (True, None)


def test_keys_are_independent():
    limiter = RateLimiter(limit=1, timer=FakeTimer())
    assert limiter.check_and_consume("a")[0] is True
    assert limiter.check_and_consume("b")[0] is True
    assert limiter.check_and_consume("a")[0] is False


def test_zero_limit_disables():
    limiter = RateLimiter(limit=0)
    assert all(limiter.check_and_consume("ip") == (True, None) for _ in range(100))


def test_only_stale_keys_are_forgotten():
    timer = FakeTimer()
    limiter = RateLimiter(limit=1, window_seconds=60, timer=timer, max_keys=2)
    limiter.check_and_consume("old-ip")
    timer.now += 30
    limiter.check_and_consume("recent-ip")
    timer.now += 31
    limiter.check_and_consume("new-ip")
    assert set(limiter._hits) == {"recent-ip", "new-ip"}
    assert limiter.check_and_consume("recent-ip")[0] is False


def test_new_key_at_capacity_drops_stale_keys():
    timer = FakeTimer()
    limiter = RateLimiter(limit=5, window_seconds=60, timer=timer, max_keys=3)
    for ip in ("a", "b", "c"):
        limiter.check_and_consume(ip)
    timer.now += 61
    limiter.check_and_consume("d")
    assert set(limiter._hits) == {"d"}
