"""
Cache Manager (v2.0.0)
Cache key generation and high-level operations for outfit recommendations.
"""
import os
import json
import hashlib
import logging
from datetime import date
from typing import Dict, Any, Iterable, List, Optional

from smartstyle.cache.cache_store import CacheStore

logger = logging.getLogger(__name__)


# Cache settings from environment
CACHE_ENABLED = os.getenv("SMARTSTYLE_CACHE_ENABLED", "true").lower() == "true"
CACHE_TTL_MINUTES = int(os.getenv("SMARTSTYLE_CACHE_TTL_MINUTES", "1440"))  # 24 hours
CACHE_MAX_ENTRIES = int(os.getenv("SMARTSTYLE_CACHE_MAX_ENTRIES", "50"))

EMPTY_WARDROBE_HASH = "empty"


def _sha256(data: Any) -> str:
    key_string = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(key_string.encode()).hexdigest()


def generate_wardrobe_hash(items: Optional[List[Dict[str, Any]]]) -> str:
    """
    Hash the parts of a wardrobe that affect recommendations.
    
    Only id, itemType and dominantColors are considered, sorted by id so
    ordering of the request does not matter.
    """
    if not items:
        return EMPTY_WARDROBE_HASH
    
    key_data = sorted(
        (
            str(item.get("id") or ""),
            str(item.get("itemType") or ""),
            ",".join(str(c) for c in (item.get("dominantColors") or [])),
        )
        for item in items
    )
    return _sha256(key_data)


def generate_request_hash(
    user_id: str,
    occasion: Optional[str] = None,
    item_ids: Optional[Iterable[str]] = None,
    season: Optional[str] = None,
    preferences: Optional[Dict[str, Any]] = None
) -> str:
    """Hash request parameters (item ids are order-insensitive)."""
    key_data = {
        "user_id": user_id,
        "occasion": occasion or "",
        "season": season or "",
        "preferences": preferences or {},
        "item_ids": sorted(str(i or "") for i in (item_ids or [])),
    }
    return _sha256(key_data)


def get_season(target: Optional[date]) -> Optional[str]:
    """Northern hemisphere season for a date."""
    if target is None:
        return None
    month = target.month
    if month in (12, 1, 2):
        return "winter"
    if month in (3, 4, 5):
        return "spring"
    if month in (6, 7, 8):
        return "summer"
    return "autumn"


class CacheManager:
    """High-level cache management for outfit recommendations."""
    
    _instance = None
    _store: Optional[CacheStore] = None
    
    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._store = CacheStore(
                ttl_minutes=CACHE_TTL_MINUTES,
                max_entries=CACHE_MAX_ENTRIES
            )
        return cls._instance
    
    @property
    def enabled(self) -> bool:
        """Check if caching is enabled."""
        return CACHE_ENABLED
    
    @staticmethod
    def build_key(request_hash: str, wardrobe_hash: str) -> str:
        return f"{request_hash}:{wardrobe_hash}"
    
    def get(self, request_hash: str, wardrobe_hash: str) -> Optional[Dict[str, Any]]:
        """Get cached recommendation."""
        if not self.enabled:
            return None
        return self._store.get(self.build_key(request_hash, wardrobe_hash))
    
    def set(
        self,
        request_hash: str,
        wardrobe_hash: str,
        response: Dict[str, Any],
        user_id: Optional[str] = None
    ):
        """Cache a recommendation."""
        if not self.enabled:
            return
        self._store.set(self.build_key(request_hash, wardrobe_hash), response, user_id=user_id)
    
    def invalidate_user(self, user_id: str) -> int:
        """Drop a user's recommendations after their wardrobe changed."""
        return self._store.invalidate_user(user_id)
    
    def clear(self):
        self._store.clear()
    
    def get_status(self) -> Dict[str, Any]:
        """Get cache status for health endpoint."""
        stats = self._store.get_stats() if self._store else {}
        return {
            "enabled": self.enabled,
            "type": "memory_lru",
            "ttl_minutes": CACHE_TTL_MINUTES,
            "max_entries": CACHE_MAX_ENTRIES,
            "entries": stats.get("entries", 0),
        }


# Global instance
cache_manager = CacheManager()
