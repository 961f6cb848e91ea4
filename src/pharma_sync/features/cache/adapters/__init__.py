"""Cache store implementations."""

from .memory_store import CacheStore

__all__ = ["CacheStore"]
