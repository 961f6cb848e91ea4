"""Cache services."""

from .cache_invalidation import invalidate_related

__all__ = ["invalidate_related"]
