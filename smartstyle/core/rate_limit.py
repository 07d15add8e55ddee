"""
Rate Limiting Module (v3.0.0)
Per-user sliding window rate limiting for outfit generation.
"""
import time
import logging
import threading
from collections import deque
from typing import Callable, Deque, Dict, Optional
from dataclasses import dataclass
from fastapi import HTTPException

from smartstyle.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 3600
# Sweep every key for expired logs once per this many hits
PURGE_EVERY_HITS = 100


@dataclass
class RateLimitResult:
    """Outcome of a rate limit check."""
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int = 0
    
    def to_headers(self) -> Dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset_at)),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class SlidingWindowRateLimiter:
    """
    Sliding window rate limiter keyed by user id.
    
    Keeps a timestamp log per key; a request is allowed while fewer than
    `max_requests` timestamps fall within the last `window_seconds`.
    Check-and-record happens under one lock so concurrent requests for
    the same user can never overshoot the limit.
    """
    
    def __init__(
        self,
        max_requests: int = 20,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._hits_since_purge = 0
    
    def _cleanup_old_requests(self, key: str, now: float) -> Deque[float]:
        """
        Drop timestamps older than the window.
        
        A key whose log empties is removed from the map, so the returned
        deque is only stored again when a request is recorded.
        """
        cutoff = now - self.window_seconds
        timestamps = self._requests.get(key)
        if timestamps is None:
            return deque()
        
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()
        
        if not timestamps:
            del self._requests[key]
        return timestamps
    
    def _purge_locked(self, now: float) -> int:
        stale = 0
        for key in list(self._requests):
            if not self._cleanup_old_requests(key, now):
                stale += 1
        self._hits_since_purge = 0
        return stale
    
    def _result(self, timestamps: Deque[float], now: float, allowed: bool) -> RateLimitResult:
        reset_at = timestamps[0] + self.window_seconds if timestamps else now + self.window_seconds
        retry_after = 0 if allowed else max(1, int(reset_at - now + 0.999))
        return RateLimitResult(
            allowed=allowed,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - len(timestamps)),
            reset_at=reset_at,
            retry_after=retry_after
        )
    
    def hit(self, key: str) -> RateLimitResult:
        """
        Check the limit for `key` and record the request if allowed.
        
        Returns:
            RateLimitResult (allowed=False means nothing was recorded)
        """
        with self._lock:
            now = self._clock()
            
            self._hits_since_purge += 1
            if self._hits_since_purge >= PURGE_EVERY_HITS:
                self._purge_locked(now)
            
            timestamps = self._cleanup_old_requests(key, now)
            
            if len(timestamps) >= self.max_requests:
                return self._result(timestamps, now, allowed=False)
            
            timestamps.append(now)
            self._requests[key] = timestamps
            return self._result(timestamps, now, allowed=True)
    
    def peek(self, key: str) -> RateLimitResult:
        """Report the current state for `key` without recording a request."""
        with self._lock:
            now = self._clock()
            timestamps = self._cleanup_old_requests(key, now)
            return self._result(timestamps, now, allowed=len(timestamps) < self.max_requests)
    
    def get_remaining(self, key: str) -> int:
        """Get remaining requests in current window."""
        return self.peek(key).remaining
    
    def purge_expired(self) -> int:
        """
        Drop keys whose whole log has expired.
        
        Returns:
            Number of keys removed
        """
        with self._lock:
            stale = self._purge_locked(self._clock())
        
        if stale:
            logger.info(f"Purged {stale} expired rate limit entries")
        return stale
    
    def tracked_keys(self) -> int:
        """Number of keys with live timestamps."""
        with self._lock:
            return len(self._requests)
    
    def reset(self, key: Optional[str] = None) -> None:
        """Forget one key, or everything."""
        with self._lock:
            if key is None:
                self._requests.clear()
            else:
                self._requests.pop(key, None)


# Global rate limiter instance
rate_limiter = SlidingWindowRateLimiter(max_requests=get_settings().rate_limit_per_hour)


def check_rate_limit(user_id: str) -> RateLimitResult:
    """
    Enforce the outfit generation limit for a user.
    
    Raises:
        HTTPException 429: If the user has exhausted the window
    """
    result = rate_limiter.hit(user_id)
    
    if not result.allowed:
        logger.warning(f"Rate limit exceeded: user={user_id}, retry_after={result.retry_after}s")
        raise HTTPException(
            status_code=429,
            detail=(
                f"Rate limit exceeded. You can generate up to {result.limit} "
                f"outfit suggestions per hour. Try again in {result.retry_after}s"
            ),
            headers=result.to_headers()
        )
    
    return result

