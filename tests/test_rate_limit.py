"""
Tests for the per-user sliding window rate limiter.
"""
import threading
import pytest
from fastapi import HTTPException

from smartstyle.core.rate_limit import SlidingWindowRateLimiter, check_rate_limit, rate_limiter


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
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
    return SlidingWindowRateLimiter(max_requests=20, window_seconds=3600, clock=clock)


class TestSlidingWindow:
    
    def test_allows_exactly_limit(self, limiter):
        results = [limiter.hit("alice") for _ in range(21)]
        
        assert all(r.allowed for r in results[:20])
        assert not results[20].allowed
        assert results[19].remaining == 0
    
    def test_rejected_call_is_not_recorded(self, limiter, clock):
        for _ in range(20):
            limiter.hit("alice")
        limiter.hit("alice")
        
        clock.advance(3600)
        
        assert limiter.get_remaining("alice") == 20
    
    def test_retry_after_counts_down_to_oldest_call(self, limiter, clock):
        limiter.hit("alice")
        clock.advance(600)
        for _ in range(19):
            limiter.hit("alice")
        
        clock.advance(60)
        result = limiter.hit("alice")
        
        assert not result.allowed
        assert result.retry_after == 3600 - 660
        assert result.to_headers()["Retry-After"] == str(3600 - 660)
    
    def test_window_is_rolling(self, limiter, clock):
        limiter.hit("alice")
        clock.advance(1800)
        for _ in range(19):
            limiter.hit("alice")
        
        assert not limiter.hit("alice").allowed
        
        # Only the first call has left the window
        clock.advance(1800)
        assert limiter.hit("alice").allowed
        assert not limiter.hit("alice").allowed
    
    def test_users_are_independent(self, limiter):
        for _ in range(20):
            limiter.hit("alice")
        
        assert not limiter.hit("alice").allowed
        assert limiter.hit("bob").allowed
    
    def test_purge_expired(self, limiter, clock):
        limiter.hit("alice")
        limiter.hit("bob")
        clock.advance(1000)
        limiter.hit("bob")
        clock.advance(3000)
        
        assert limiter.purge_expired() == 1
        assert limiter.get_remaining("bob") == 19
    
    def test_expired_keys_leave_the_map(self, limiter, clock):
        for i in range(50):
            limiter.hit(f"user{i}")
        
        clock.advance(7200)
        for i in range(30):
            limiter.peek(f"stranger{i}")
        limiter.get_remaining("user0")
        
        # peeks never add keys; the expired key that was looked at is dropped
        assert limiter.tracked_keys() == 49
        
        limiter.purge_expired()
        assert limiter.tracked_keys() == 0
    
    def test_hits_sweep_expired_keys(self, clock):
        limiter = SlidingWindowRateLimiter(max_requests=20, window_seconds=3600, clock=clock)
        for i in range(99):
            limiter.hit(f"user{i}")
        
        clock.advance(7200)
        limiter.hit("late")
        
        assert limiter.tracked_keys() == 1
    
    def test_headers(self, limiter, clock):
        headers = limiter.hit("alice").to_headers()
        
        assert headers["X-RateLimit-Limit"] == "20"
        assert headers["X-RateLimit-Remaining"] == "19"
        assert headers["X-RateLimit-Reset"] == str(int(clock.now + 3600))
        assert "Retry-After" not in headers
    
    def test_concurrent_hits_never_exceed_limit(self):
        limiter = SlidingWindowRateLimiter(max_requests=20)
        allowed = []
        
        def worker():
            for _ in range(10):
                allowed.append(limiter.hit("alice").allowed)
        
        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        
        assert allowed.count(True) == 20


class TestCheckRateLimit:
    
    def test_raises_429_after_limit(self):
        for _ in range(rate_limiter.max_requests):
            check_rate_limit("carol")
        
        with pytest.raises(HTTPException) as exc_info:
            check_rate_limit("carol")
        
        assert exc_info.value.status_code == 429
        assert "Retry-After" in exc_info.value.headers
