"""Cache entry and statistics entities."""

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """Cache entry with access metadata.

    ``value`` holds the payload as given to ``set`` or, when ``compressed``
    is true, the gzip-encoded serialized form. ``size_bytes`` always
    describes what is actually stored.
    """
    key: str
    value: Any
    created_at: float
    ttl: float
    tags: FrozenSet[str] = field(default_factory=frozenset)
    access_count: int = 0
    last_accessed_at: float = 0.0
    size_bytes: int = 0
    compressed: bool = False
    original_size_bytes: int = 0
    sequence: int = 0
    serializer: Optional[Any] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if not self.last_accessed_at:
            self.last_accessed_at = self.created_at
        if not self.original_size_bytes:
            self.original_size_bytes = self.size_bytes

    def is_expired(self, now: float) -> bool:
        """An entry is logically absent once its age exceeds the TTL."""
        return now - self.created_at > self.ttl

    def touch(self, now: float) -> None:
        """Record access to this entry."""
        self.access_count += 1
        self.last_accessed_at = now

    def age(self, now: float) -> float:
        return now - self.created_at

    def idle_time(self, now: float) -> float:
        return now - self.last_accessed_at

    def remaining_ttl(self, now: float) -> float:
        return max(0.0, self.ttl - self.age(now))

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def eviction_rank(self) -> tuple:
        """Sort key for LRU eviction: least recently used first."""
        return (self.last_accessed_at, self.created_at, self.sequence)


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time cache statistics. Monitoring only."""

    total_entries: int
    total_size_bytes: int
    hits: int
    misses: int
    evictions: int
    expirations: int
    bytes_saved_by_compression: int

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Hit rate in percent."""
        if self.total_requests == 0:
            return 0.0
        return self.hits / self.total_requests * 100

    @property
    def miss_rate(self) -> float:
        """Miss rate in percent."""
        if self.total_requests == 0:
            return 0.0
        return self.misses / self.total_requests * 100

    @property
    def compression_ratio(self) -> float:
        """Share of bytes saved by compression, in percent."""
        if self.bytes_saved_by_compression <= 0:
            return 0.0
        return self.bytes_saved_by_compression / (self.total_size_bytes + self.bytes_saved_by_compression) * 100

    def to_dict(self) -> dict:
        return {
            "total_entries": self.total_entries,
            "total_size_bytes": self.total_size_bytes,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "bytes_saved_by_compression": self.bytes_saved_by_compression,
            "hit_rate": self.hit_rate,
            "miss_rate": self.miss_rate,
            "compression_ratio": self.compression_ratio,
        }
