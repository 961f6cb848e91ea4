"""Cache key conventions, tags and TTL presets.

Keys follow ``<entity>-<scope>-<qualifiers>``, e.g. ``products-<outlet_id>``.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional


class CacheTags:
    """Tags grouping related cache entries for bulk invalidation."""
    PRODUCTS = "products"
    SALES = "sales"
    INVENTORY = "inventory"
    USERS = "users"
    OUTLETS = "outlets"
    REPORTS = "reports"
    DASHBOARD = "dashboard"
    PREFETCHED = "prefetched"


class CacheDurations:
    """Common cache durations in seconds."""
    SHORT = 30.0
    MEDIUM = 2 * 60.0
    LONG = 10 * 60.0
    VERY_LONG = 30 * 60.0


# TTL per data type, grouped by how fast the data changes
DATA_TYPE_DURATIONS: Dict[str, Dict[str, float]] = {
    "realtime": {
        "sales": 30.0,
        "inventory": 60.0,
        "shifts": 30.0,
    },
    "frequent": {
        "products": 2 * 60.0,
        "users": 5 * 60.0,
        "reports": 5 * 60.0,
    },
    "stable": {
        "outlets": 10 * 60.0,
        "categories": 30 * 60.0,
        "settings": 60 * 60.0,
    },
    "session": {
        "auth": 24 * 60 * 60.0,
        "preferences": 7 * 24 * 60 * 60.0,
    },
}

DEFAULT_DURATION = 5 * 60.0

# Key prefixes touched by a mutation of each entity
RELATED_KEY_PREFIXES: Dict[str, List[str]] = {
    "product": ["products-", "inventory-", "dashboard-"],
    "sale": ["sales-", "reports-", "dashboard-", "daily-summary-"],
    "inventory": ["inventory-", "products-", "dashboard-"],
    "user": ["users-", "staff-performance-"],
}


@dataclass(frozen=True)
class ParsedCacheKey:
    """Components of a ``<entity>-<scope>-<qualifiers>`` key."""
    entity: str
    scope: Optional[str] = None
    qualifier: Optional[str] = None


def build_cache_key(prefix: str, *parts: Any) -> str:
    """Join prefix and parts with dashes, skipping parts that are None."""
    clean_parts = [str(part) for part in parts if part is not None]
    if not clean_parts:
        return prefix
    return f"{prefix}-{'-'.join(clean_parts)}"


def build_param_key(base: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Build ``base:k1:v1|k2:v2`` with parameters sorted by name."""
    if not params:
        return base
    sorted_params = "|".join(f"{name}:{params[name]}" for name in sorted(params))
    return f"{base}:{sorted_params}"


def parse_cache_key(key: str) -> ParsedCacheKey:
    """Split a key into entity, scope and the first qualifier."""
    parts = key.split("-")
    return ParsedCacheKey(
        entity=parts[0],
        scope=parts[1] if len(parts) > 1 and parts[1] else None,
        qualifier=parts[2] if len(parts) > 2 and parts[2] else None,
    )


def duration_for(data_type: str) -> float:
    """TTL for a data type, falling back to five minutes."""
    for durations in DATA_TYPE_DURATIONS.values():
        if data_type in durations:
            return durations[data_type]
    return DEFAULT_DURATION


def related_invalidation_patterns(entity: str, outlet_id: Optional[str] = None) -> List[str]:
    """Key patterns to invalidate after a create/update/delete of entity."""
    patterns = list(RELATED_KEY_PREFIXES.get(entity, []))
    if patterns and outlet_id:
        patterns.append(f"-{outlet_id}")
    return patterns
