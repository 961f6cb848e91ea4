"""Invalidation of entries related to a mutated entity."""

import logging
from typing import Optional

from ..adapters.memory_store import CacheStore
from ..entities.keys import related_invalidation_patterns

logger = logging.getLogger(__name__)


def invalidate_related(store: CacheStore, entity: str, outlet_id: Optional[str] = None) -> int:
    """Drop cached reads affected by a create/update/delete of entity.

    Each pattern from ``related_invalidation_patterns`` is matched as a
    regular expression anywhere in the key. Unknown entities invalidate
    nothing.

    Args:
        store: Cache store to invalidate
        entity: Mutated entity kind (``product``, ``sale``, ``inventory``, ``user``)
        outlet_id: Outlet scope of the mutation, if any

    Returns:
        Number of entries removed
    """
    removed = 0
    for pattern in related_invalidation_patterns(entity, outlet_id):
        removed += store.invalidate_by_pattern(pattern)

    if removed:
        logger.info(f"Invalidated {removed} cache entries related to {entity}")
    return removed
