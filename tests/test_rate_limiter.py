# tests/test_rate_limiter.py
"""
Unit tests for the token-bucket RateLimiter.

A fake clock drives refill so the tests never sleep.
"""

from __future__ import annotations

import threading

import pytest

from ai_router.config import RateLimitConfig
from ai_router.exceptions import RateLimitExceeded
from ai_router.limiter.token_bucket import RateLimiter


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def make_limiter(clock: FakeClock, **kwargs) -> RateLimiter:
    return RateLimiter(RateLimitConfig(**kwargs), clock=clock)


class TestAdmission:
    def test_new_client_starts_full(self, clock):
        limiter = make_limiter(clock, max_requests=5, window_seconds=1)
        assert limiter.get_remaining("alice") == 5

    def test_capacity_then_reject(self, clock):
        limiter = make_limiter(clock, max_requests=2, window_seconds=1)
        assert limiter.is_allowed("alice") is True
        assert limiter.is_allowed("alice") is True
        assert limiter.is_allowed("alice") is False
        assert limiter.get_remaining("alice") == 0

    def test_clients_are_isolated(self, clock):
        limiter = make_limiter(clock, max_requests=1, window_seconds=1)
        assert limiter.is_allowed("alice")
        assert not limiter.is_allowed("alice")
        assert limiter.is_allowed("bob")

    def test_global_mode_shares_one_bucket(self, clock):
        limiter = make_limiter(clock, max_requests=2, window_seconds=1, per_client=False)
        assert limiter.is_allowed("alice")
        assert limiter.is_allowed("bob")
        assert not limiter.is_allowed("carol")
        assert limiter.get_remaining("dave") == 0


class TestRefill:
    def test_token_accrues_after_interval(self, clock):
        limiter = make_limiter(clock, max_requests=2, window_seconds=1)
        limiter.is_allowed("alice")
        limiter.is_allowed("alice")
        clock.advance(0.5)
        assert limiter.get_remaining("alice") == 1
        assert limiter.is_allowed("alice")
        assert not limiter.is_allowed("alice")

    def test_partial_interval_adds_nothing(self, clock):
        limiter = make_limiter(clock, max_requests=2, window_seconds=1)
        limiter.is_allowed("alice")
        limiter.is_allowed("alice")
        clock.advance(0.4)
        assert limiter.get_remaining("alice") == 0
        assert not limiter.is_allowed("alice")

    def test_fractional_time_is_not_lost(self, clock):
        limiter = make_limiter(clock, max_requests=2, window_seconds=1)
        limiter.is_allowed("alice")
        limiter.is_allowed("alice")
        # Two rejected checks 0.3s apart: refill time stays anchored.
        clock.advance(0.3)
        assert not limiter.is_allowed("alice")
        clock.advance(0.3)
        assert limiter.is_allowed("alice")

    def test_refill_never_exceeds_capacity(self, clock):
        limiter = make_limiter(clock, max_requests=3, window_seconds=1)
        limiter.is_allowed("alice")
        clock.advance(60)
        assert limiter.get_remaining("alice") == 3

    def test_get_remaining_does_not_consume(self, clock):
        limiter = make_limiter(clock, max_requests=2, window_seconds=1)
        limiter.is_allowed("alice")
        for _ in range(5):
            assert limiter.get_remaining("alice") == 1


class TestRetryAfter:
    def test_zero_while_tokens_remain(self, clock):
        limiter = make_limiter(clock, max_requests=2, window_seconds=1)
        assert limiter.get_retry_after("alice") == 0.0
        limiter.is_allowed("alice")
        assert limiter.get_retry_after("alice") == 0.0

    def test_time_until_next_token(self, clock):
        limiter = make_limiter(clock, max_requests=2, window_seconds=1)
        limiter.is_allowed("alice")
        limiter.is_allowed("alice")
        clock.advance(0.2)
        assert limiter.get_retry_after("alice") == pytest.approx(0.3)

    def test_check_raises_with_retry_after(self, clock):
        limiter = make_limiter(clock, max_requests=1, window_seconds=10)
        limiter.check("alice")
        with pytest.raises(RateLimitExceeded) as exc_info:
            limiter.check("alice")
        assert exc_info.value.retry_after == pytest.approx(10.0)
        assert exc_info.value.remaining == 0
        assert "Retry after 10 seconds" in str(exc_info.value)


class TestReset:
    def test_reset_restores_full_bucket(self, clock):
        limiter = make_limiter(clock, max_requests=1, window_seconds=60)
        limiter.is_allowed("alice")
        limiter.is_allowed("bob")
        limiter.reset("alice")
        assert limiter.is_allowed("alice")
        assert not limiter.is_allowed("bob")

    def test_clear_forgets_everyone(self, clock):
        limiter = make_limiter(clock, max_requests=1, window_seconds=60)
        limiter.is_allowed("alice")
        limiter.is_allowed("bob")
        limiter.clear()
        assert limiter.get_remaining("alice") == 1
        assert limiter.get_remaining("bob") == 1


class TestGlobalCeiling:
    def test_ceiling_caps_all_clients(self, clock):
        limiter = make_limiter(clock, max_requests=5, window_seconds=60, global_limit=3)
        assert limiter.is_allowed("a")
        assert limiter.is_allowed("b")
        assert limiter.is_allowed("c")
        assert not limiter.is_allowed("d")

    def test_client_rejection_does_not_spend_ceiling(self, clock):
        limiter = make_limiter(clock, max_requests=1, window_seconds=60, global_limit=2)
        assert limiter.is_allowed("a")
        assert not limiter.is_allowed("a")
        assert limiter.is_allowed("b")

    def test_ceiling_rejection_reports_ceiling_wait(self, clock):
        limiter = make_limiter(clock, max_requests=5, window_seconds=60, global_limit=1)
        assert limiter.is_allowed("a")
        assert not limiter.is_allowed("b")
        assert limiter.get_remaining("b") == 0
        assert limiter.get_retry_after("b") == pytest.approx(60.0)

        with pytest.raises(RateLimitExceeded) as exc_info:
            limiter.check("b")
        assert exc_info.value.retry_after == pytest.approx(60.0)
        assert exc_info.value.remaining == 0

        clock.advance(60)
        assert limiter.get_retry_after("b") == 0.0
        assert limiter.is_allowed("b")

    def test_client_wait_wins_when_longer(self, clock):
        limiter = make_limiter(clock, max_requests=1, window_seconds=60, global_limit=10)
        assert limiter.is_allowed("a")
        assert not limiter.is_allowed("a")
        # Client refills every 60s, the ceiling every 6s.
        assert limiter.get_retry_after("a") == pytest.approx(60.0)
        assert limiter.get_remaining("a") == 0
        assert limiter.get_remaining("b") == 1


class TestConcurrency:
    def test_last_token_taken_once(self):
        limiter = RateLimiter(RateLimitConfig(max_requests=50, window_seconds=3600))
        results: list[bool] = []
        lock = threading.Lock()

        def worker():
            for _ in range(10):
                allowed = limiter.is_allowed("shared")
                with lock:
                    results.append(allowed)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 50
        assert results.count(False) == 50
