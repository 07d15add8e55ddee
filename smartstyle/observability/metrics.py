"""
Metrics Module (v1.1.0)
Track request counts, cache performance and rejections.
"""
import threading
from typing import Dict, Any

# Thread-safe metrics storage
_lock = threading.Lock()


def _empty_metrics() -> Dict[str, Any]:
    return {
        "total_requests": 0,
        "cache_hits": 0,
        "cache_misses": 0,
        "rate_limited": 0,
        "weather_failures": 0,
        "requests_by_provider": {},
        "errors": 0
    }


_metrics = _empty_metrics()


def increment_request(provider: str = None, cache_hit: bool = False, error: bool = False):
    """
    Record a recommendation request in metrics.
    
    Args:
        provider: LLM provider used
        cache_hit: Whether it was a cache hit
        error: Whether request failed
    """
    with _lock:
        _metrics["total_requests"] += 1
        
        if cache_hit:
            _metrics["cache_hits"] += 1
        else:
            _metrics["cache_misses"] += 1
        
        if provider:
            _metrics["requests_by_provider"][provider] = _metrics["requests_by_provider"].get(provider, 0) + 1
        
        if error:
            _metrics["errors"] += 1


def increment_rate_limited():
    with _lock:
        _metrics["rate_limited"] += 1


def increment_weather_failure():
    with _lock:
        _metrics["weather_failures"] += 1


def get_metrics() -> Dict[str, Any]:
    """Get current metrics snapshot."""
    with _lock:
        total = _metrics["total_requests"]
        hits = _metrics["cache_hits"]
        
        return {
            "total_requests": total,
            "cache_hits": hits,
            "cache_misses": _metrics["cache_misses"],
            "cache_hit_ratio": round(hits / total, 3) if total > 0 else 0.0,
            "rate_limited": _metrics["rate_limited"],
            "weather_failures": _metrics["weather_failures"],
            "requests_by_provider": dict(_metrics["requests_by_provider"]),
            "errors": _metrics["errors"]
        }


def reset_metrics():
    """Reset all metrics (for testing)."""
    global _metrics
    with _lock:
        _metrics = _empty_metrics()
