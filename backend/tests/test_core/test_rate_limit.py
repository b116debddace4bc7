"""
Tests for the sliding window rate limiter
"""
import pytest

from storefront.core.config import RateLimitRule
from storefront.core.rate_limit import RateLimiter


class FakeClock:
    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    rules = {
        "checkout": RateLimitRule(max_requests=3, window_seconds=600),
        "default": RateLimitRule(max_requests=10, window_seconds=60),
    }
    return RateLimiter(rules, cleanup_interval=60, clock=clock)


class TestRateLimiter:
    """Sliding window per (endpoint class, client)"""

    def test_allows_up_to_the_limit_then_rejects(self, limiter):
        # Arrange / Act
        decisions = [limiter.check("10.0.0.1", "checkout") for _ in range(4)]

        # Assert
        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert [d.remaining for d in decisions] == [2, 1, 0, 0]
        assert decisions[-1].retry_after > 0

    def test_window_slides(self, limiter, clock):
        """Test requests older than the window no longer count"""
        for _ in range(3):
            limiter.check("10.0.0.1", "checkout")
            clock.advance(100)

        assert not limiter.check("10.0.0.1", "checkout").allowed

        # The first request was at t0; at t0 + 601 it has left the window
        clock.advance(301)
        decision = limiter.check("10.0.0.1", "checkout")

        assert decision.allowed
        assert decision.remaining == 0

    def test_retry_after_points_at_oldest_request_expiry(self, limiter, clock):
        for _ in range(3):
            limiter.check("10.0.0.1", "checkout")

        clock.advance(100)
        decision = limiter.check("10.0.0.1", "checkout")

        assert not decision.allowed
        assert decision.retry_after == 501
        assert decision.reset_at == clock.now - 100 + 600

    def test_clients_and_classes_are_independent(self, limiter):
        for _ in range(3):
            limiter.check("10.0.0.1", "checkout")

        assert not limiter.check("10.0.0.1", "checkout").allowed
        assert limiter.check("10.0.0.2", "checkout").allowed
        assert limiter.check("10.0.0.1", "default").allowed

    def test_unknown_class_uses_default_rule(self, limiter):
        decision = limiter.check("10.0.0.1", "newsletter")
        assert decision.limit == 10

    def test_cleanup_drops_expired_keys(self, limiter, clock):
        limiter.check("10.0.0.1", "default")
        limiter.check("10.0.0.2", "default")
        assert limiter.tracked_keys == 2

        clock.advance(700)
        limiter.check("10.0.0.3", "default")

        assert limiter.tracked_keys == 1

    def test_reset(self, limiter):
        for _ in range(3):
            limiter.check("10.0.0.1", "checkout")

        limiter.reset()

        assert limiter.check("10.0.0.1", "checkout").allowed

    def test_rules_need_default_class(self):
        with pytest.raises(ValueError):
            RateLimiter({"checkout": RateLimitRule(1, 1)})
