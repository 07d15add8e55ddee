# Cache module
from smartstyle.cache.cache_manager import (
    cache_manager,
    generate_request_hash,
    generate_wardrobe_hash,
    get_season,
)
from smartstyle.cache.cache_store import CacheStore
