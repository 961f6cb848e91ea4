"""In-memory cache store with TTL, LRU eviction and tag/pattern invalidation.

Every public operation except ``prefetch`` and the lifecycle methods is
synchronous: bookkeeping (size totals, LRU ranks) completes within a single
call, so concurrent coroutines on the same loop never observe a store that
is over budget.
"""

import asyncio
import logging
import re
import time
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Pattern,
    Tuple,
    TypeVar,
    Union,
)

from ..entities.cache_entry import CacheEntry, CacheStats
from ..entities.config import CacheStoreConfig
from ..entities.protocols import CacheEvent, CacheSerializer, Clock
from ..serializers.compression import compress, decompress
from ..serializers.json_serializer import JsonCacheSerializer
from ....core.exceptions import CacheKeyError, CacheSerializationError
from ....core.observers import ObserverRegistry, Subscription

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


class CacheStore:
    """Bounded key/value store shared by the request layer.

    Create one per application and pass it to its consumers; call
    ``start()`` to run the periodic expiry sweep and ``destroy()`` at shutdown.
    """

    def __init__(
        self,
        config: Optional[CacheStoreConfig] = None,
        serializer: Optional[CacheSerializer] = None,
        clock: Clock = time.monotonic,
    ):
        self.config = config or CacheStoreConfig()
        self.serializer = serializer or JsonCacheSerializer()
        self._clock = clock

        self._store: Dict[str, CacheEntry] = {}
        self._total_size_bytes = 0
        self._sequence = 0

        self._stats = self._empty_stats()
        self._events: ObserverRegistry[CacheEvent] = ObserverRegistry("cache")

        # Background cleanup task
        self._cleanup_task: Optional[asyncio.Task] = None

    # Core operations

    def set(
        self,
        key: str,
        value: Any,
        *,
        ttl: Optional[float] = None,
        tags: Optional[Iterable[str]] = None,
        force_compress: bool = False,
        serializer: Optional[CacheSerializer] = None,
    ) -> CacheEntry:
        """Store value under key, replacing any previous entry."""
        if not isinstance(key, str) or not key:
            raise CacheKeyError(f"Invalid cache key: {key!r}")

        serializer = serializer or self.serializer
        now = self._clock()

        encoded = serializer.dumps(value)
        original_size = len(encoded)
        stored_value: Any = value
        size = original_size
        compressed = False

        if force_compress or (self.config.enable_compression and original_size > self.config.compression_threshold):
            packed = compress(encoded, self.config.compression_level)
            # Threshold-triggered compression is only kept when it actually shrinks the payload
            if force_compress or len(packed) < original_size:
                stored_value = packed
                size = len(packed)
                compressed = True
                self._stats["compression_saves"] += max(0, original_size - size)

        self._sequence += 1
        entry = CacheEntry(
            key=key,
            value=stored_value,
            created_at=now,
            ttl=self.config.default_ttl if ttl is None else ttl,
            tags=frozenset(tags or ()),
            last_accessed_at=now,
            size_bytes=size,
            compressed=compressed,
            original_size_bytes=original_size,
            sequence=self._sequence,
            serializer=serializer,
        )

        if key in self._store:
            self._remove_entry(key)
        self._store[key] = entry
        self._total_size_bytes += entry.size_bytes

        self._events.emit(CacheEvent.SET, key, entry)
        self._enforce_limits()
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        """Return the decoded value, or default when absent, expired or corrupted.

        Pass a sentinel as default to tell a cached None apart from a miss.
        """
        entry = self._store.get(key)

        if entry is None:
            self._record_miss(key)
            return default

        now = self._clock()
        if entry.is_expired(now):
            self._remove_entry(key)
            self._stats["expirations"] += 1
            self._events.emit(CacheEvent.EXPIRE, key)
            self._record_miss(key)
            return default

        try:
            value = self._decode(entry)
        except CacheSerializationError as e:
            logger.warning(f"Dropping corrupted cache entry {key}: {e.message}")
            self._remove_entry(key)
            self._record_miss(key)
            return default

        entry.touch(now)
        self._stats["hits"] += 1
        self._events.emit(CacheEvent.HIT, key, value)
        return value

    def has(self, key: str) -> bool:
        """Check that key exists and is not expired. Access stats are left alone."""
        entry = self._store.get(key)
        if entry is None:
            return False

        if entry.is_expired(self._clock()):
            self._remove_entry(key)
            self._stats["expirations"] += 1
            self._events.emit(CacheEvent.EXPIRE, key)
            return False

        return True

    def delete(self, key: str) -> bool:
        """Delete key and return whether it existed."""
        if key not in self._store:
            return False
        self._remove_entry(key)
        self._events.emit(CacheEvent.DELETE, key)
        return True

    def invalidate_by_tag(self, tag: str) -> int:
        """Remove every entry carrying tag."""
        keys = [key for key, entry in self._store.items() if entry.has_tag(tag)]
        for key in keys:
            self.delete(key)
        if keys:
            logger.debug(f"Invalidated {len(keys)} cache entries tagged '{tag}'")
        return len(keys)

    def invalidate_by_pattern(self, pattern: Union[str, Pattern[str]]) -> int:
        """Remove every entry whose key matches the regular expression anywhere."""
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        keys = [key for key in self._store if regex.search(key)]
        for key in keys:
            self.delete(key)
        if keys:
            logger.debug(f"Invalidated {len(keys)} cache entries matching '{regex.pattern}'")
        return len(keys)

    def cleanup(self) -> int:
        """Sweep expired entries, then re-enforce budgets. Returns expired count."""
        expired = self._evict_expired()
        self._enforce_limits()

        if expired > 0:
            logger.debug(f"Cache cleanup: removed {expired} expired entries")
        return expired

    def stats(self) -> CacheStats:
        return CacheStats(
            total_entries=len(self._store),
            total_size_bytes=self._total_size_bytes,
            hits=self._stats["hits"],
            misses=self._stats["misses"],
            evictions=self._stats["evictions"],
            expirations=self._stats["expirations"],
            bytes_saved_by_compression=self._stats["compression_saves"],
        )

    # Bulk and inspection helpers

    def clear(self) -> None:
        """Remove all entries and reset statistics."""
        self._store.clear()
        self._total_size_bytes = 0
        self._stats = self._empty_stats()

    def keys(self) -> List[str]:
        return list(self._store.keys())

    def entries(self) -> List[Tuple[str, CacheEntry]]:
        """Snapshot of stored entries, expired ones included until swept."""
        return list(self._store.items())

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Raw entry without expiry checks or access tracking."""
        return self._store.get(key)

    def set_many(self, items: Iterable[Tuple[str, Any, Optional[Mapping[str, Any]]]]) -> None:
        """Store ``(key, value, options)`` triples; options are ``set`` keywords."""
        for key, value, options in items:
            self.set(key, value, **(options or {}))

    def get_many(self, keys: Iterable[str]) -> Dict[str, Optional[Any]]:
        return {key: self.get(key) for key in keys}

    def delete_many(self, keys: Iterable[str]) -> int:
        return sum(1 for key in keys if self.delete(key))

    async def prefetch(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[T]],
        *,
        ttl: Optional[float] = None,
        tags: Optional[Iterable[str]] = None,
        force: bool = False,
    ) -> T:
        """Return the cached value, or fetch and store it."""
        if not force:
            cached = self.get(key, _MISSING)
            if cached is not _MISSING:
                return cached

        try:
            data = await fetcher()
        except Exception as e:
            logger.error(f"Failed to prefetch data for key {key}: {e}")
            raise

        self.set(key, data, ttl=ttl, tags=tags)
        return data

    def subscribe(self, event: CacheEvent, callback: Callable[..., Any]) -> Subscription:
        """Observe store events; dispose the returned handle to stop."""
        return self._events.subscribe(event, callback)

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    @property
    def total_size_bytes(self) -> int:
        return self._total_size_bytes

    # Lifecycle

    @property
    def running(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()

    async def start(self) -> None:
        """Start the periodic expiry sweep on the running loop."""
        if self.running:
            return
        self._cleanup_task = asyncio.create_task(self._background_cleanup())
        logger.info(
            f"Cache store started: max_entries={self.config.max_entries}, "
            f"max_size_bytes={self.config.max_size_bytes}"
        )

    async def destroy(self) -> None:
        """Stop the sweep and drop all entries."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None

        self.clear()
        self._events.clear()

    # Internals

    def _decode(self, entry: CacheEntry) -> Any:
        """Decode a stored value; raw entries are still checked by the serializer."""
        serializer = entry.serializer or self.serializer
        if entry.compressed:
            return serializer.loads(decompress(entry.value))
        return serializer.validate(entry.value)

    def _record_miss(self, key: str) -> None:
        self._stats["misses"] += 1
        self._events.emit(CacheEvent.MISS, key)

    def _remove_entry(self, key: str) -> None:
        """Remove entry from store and update size tracking."""
        entry = self._store.pop(key, None)
        if entry:
            self._total_size_bytes -= entry.size_bytes

    def _evict_expired(self) -> int:
        now = self._clock()
        expired_keys = [key for key, entry in self._store.items() if entry.is_expired(now)]

        for key in expired_keys:
            self._remove_entry(key)
            self._events.emit(CacheEvent.EXPIRE, key)

        self._stats["expirations"] += len(expired_keys)
        return len(expired_keys)

    def _evict_lru(self) -> None:
        """Evict the least recently used entry."""
        if not self._store:
            return

        key = min(self._store.values(), key=CacheEntry.eviction_rank).key
        self._remove_entry(key)
        self._stats["evictions"] += 1
        self._events.emit(CacheEvent.EVICT, key)
        logger.debug(f"Evicted least recently used cache entry {key}")

    def _enforce_limits(self) -> None:
        self._evict_expired()

        while self._store and (
            len(self._store) > self.config.max_entries
            or self._total_size_bytes > self.config.max_size_bytes
        ):
            self._evict_lru()

    async def _background_cleanup(self) -> None:
        """Background task to clean up expired entries."""
        while True:
            try:
                await asyncio.sleep(self.config.cleanup_interval)
                self.cleanup()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in background cleanup: {e}")

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
            "expirations": 0,
            "compression_saves": 0,
        }
