"""
Cache Store (v2.0.0)
In-memory LRU cache with TTL for recommendation responses.
"""
import time
import logging
import threading
from collections import OrderedDict
from typing import Callable, Dict, Any, Optional

logger = logging.getLogger(__name__)


class CacheStore:
    """
    In-memory LRU cache.
    
    Entries expire `ttl_minutes` after they were written; when the store
    is full the least recently accessed entry is evicted.
    """
    
    def __init__(
        self,
        ttl_minutes: int = 1440,
        max_entries: int = 50,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize cache store.
        
        Args:
            ttl_minutes: Time-to-live in minutes (default: 24 hours)
            max_entries: Capacity before LRU eviction (0 disables caching)
            clock: Time source (seconds)
        """
        self.ttl_seconds = ttl_minutes * 60
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        self._lock = threading.Lock()
    
    def get(self, cache_key: str) -> Optional[Dict[str, Any]]:
        """
        Get cached data if exists and not expired.
        
        Args:
            cache_key: Cache key
            
        Returns:
            Cached response dict or None
        """
        with self._lock:
            entry = self._entries.get(cache_key)
            if entry is None:
                return None
            
            if self._clock() - entry["cached_at"] > self.ttl_seconds:
                logger.info(f"Cache expired: {cache_key[:16]}...")
                del self._entries[cache_key]
                return None
            
            self._entries.move_to_end(cache_key)
        
        logger.info(f"Cache hit: {cache_key[:16]}...")
        return entry["response"]
    
    def set(self, cache_key: str, response: Dict[str, Any], user_id: Optional[str] = None):
        """
        Save response to cache.
        
        Args:
            cache_key: Cache key
            response: Response data to cache
            user_id: Owner, used by invalidate_user()
        """
        if self.max_entries <= 0:
            logger.debug(f"Cache disabled, not saving: {cache_key[:16]}...")
            return
        
        with self._lock:
            if cache_key in self._entries:
                del self._entries[cache_key]
            
            while self._entries and len(self._entries) >= self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache evicted (LRU): {evicted[:16]}...")
            
            self._entries[cache_key] = {
                "response": response,
                "user_id": user_id,
                "cached_at": self._clock(),
            }
        
        logger.info(f"Cache saved: {cache_key[:16]}...")
    
    def invalidate_user(self, user_id: str) -> int:
        """
        Drop every entry owned by `user_id`.
        
        Returns:
            Number of entries removed
        """
        with self._lock:
            keys = [k for k, v in self._entries.items() if v["user_id"] == user_id]
            for key in keys:
                del self._entries[key]
        
        if keys:
            logger.info(f"Invalidated {len(keys)} cache entries for user {user_id}")
        return len(keys)
    
    def clear_expired(self) -> int:
        """
        Remove all expired entries.
        
        Returns:
            Number of entries removed
        """
        now = self._clock()
        with self._lock:
            expired = [
                k for k, v in self._entries.items()
                if now - v["cached_at"] > self.ttl_seconds
            ]
            for key in expired:
                del self._entries[key]
        
        if expired:
            logger.info(f"Cleared {len(expired)} expired cache entries")
        return len(expired)
    
    def clear(self):
        """Remove all entries."""
        with self._lock:
            self._entries.clear()
    
    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        now = self._clock()
        with self._lock:
            total = len(self._entries)
            expired = sum(
                1 for v in self._entries.values()
                if now - v["cached_at"] > self.ttl_seconds
            )
        
        return {
            "entries": total,
            "valid": total - expired,
            "expired": expired,
            "max_entries": self.max_entries,
        }
