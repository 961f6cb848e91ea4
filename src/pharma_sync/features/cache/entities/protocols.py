"""Cache protocols and enums."""

from enum import Enum
from typing import Any, Callable, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")

Clock = Callable[[], float]


class SerializationFormat(str, Enum):
    """Serialization formats for cache values."""
    JSON = "json"
    PYDANTIC = "pydantic"


class CacheEvent(str, Enum):
    """Events published by the cache store."""
    HIT = "hit"
    MISS = "miss"
    SET = "set"
    DELETE = "delete"
    EXPIRE = "expire"
    EVICT = "evict"


@runtime_checkable
class CacheSerializer(Protocol[T]):
    """Protocol for cache value serialization.

    ``loads`` and ``validate`` must raise CacheSerializationError for data
    they cannot accept so the store can treat it as a miss.
    """

    def dumps(self, value: T) -> bytes:
        """Serialize value to bytes."""
        ...

    def loads(self, data: bytes) -> T:
        """Deserialize bytes to value."""
        ...

    def validate(self, value: Any) -> T:
        """Check a value stored without serialization."""
        ...

    @property
    def format(self) -> SerializationFormat:
        """Get serialization format."""
        ...
