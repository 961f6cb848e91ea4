"""Cache domain objects, protocols, key conventions and configuration."""

from .cache_entry import CacheEntry, CacheStats
from .config import CacheStoreConfig
from .protocols import CacheEvent, CacheSerializer, Clock, SerializationFormat
from .keys import (
    CacheTags,
    CacheDurations,
    ParsedCacheKey,
    build_cache_key,
    build_param_key,
    parse_cache_key,
    duration_for,
    related_invalidation_patterns,
)

__all__ = [
    "CacheEntry",
    "CacheStats",
    "CacheStoreConfig",
    "CacheEvent",
    "CacheSerializer",
    "Clock",
    "SerializationFormat",
    "CacheTags",
    "CacheDurations",
    "ParsedCacheKey",
    "build_cache_key",
    "build_param_key",
    "parse_cache_key",
    "duration_for",
    "related_invalidation_patterns",
]
