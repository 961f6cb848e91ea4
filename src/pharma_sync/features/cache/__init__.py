"""Cache feature for pharma-sync.

- entities/: Cache entries, stats, configuration, key conventions
- serializers/: JSON and pydantic serializers, gzip compression
- adapters/: In-memory store with TTL and LRU eviction
- services/: Related-entity invalidation
"""

# Entities and configuration
from .entities import (
    CacheEntry,
    CacheStats,
    CacheStoreConfig,
    CacheEvent,
    CacheSerializer,
    CacheTags,
    CacheDurations,
    build_cache_key,
    build_param_key,
    parse_cache_key,
    duration_for,
    related_invalidation_patterns,
)

# Serializers
from .serializers import JsonCacheSerializer, PydanticCacheSerializer

# Store
from .adapters.memory_store import CacheStore

# Services
from .services.cache_invalidation import invalidate_related

__all__ = [
    # Entities
    "CacheEntry",
    "CacheStats",
    "CacheStoreConfig",
    "CacheEvent",
    "CacheSerializer",
    "CacheTags",
    "CacheDurations",
    "build_cache_key",
    "build_param_key",
    "parse_cache_key",
    "duration_for",
    "related_invalidation_patterns",

    # Serializers
    "JsonCacheSerializer",
    "PydanticCacheSerializer",

    # Store
    "CacheStore",

    # Services
    "invalidate_related",
]
