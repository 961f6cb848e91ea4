"""Typed cache serializer backed by pydantic."""

from typing import Any, Generic, Type, TypeVar

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..entities.protocols import SerializationFormat
from ....core.exceptions import CacheSerializationError

T = TypeVar("T")


class PydanticCacheSerializer(Generic[T]):
    """Serializer for one entity type, e.g. ``PydanticCacheSerializer(list[Product])``.

    Decoded payloads are validated against the type, so a corrupted or
    mismatched entry fails here instead of reaching the caller as a loose dict.
    """

    def __init__(self, type_: Type[T] | Any):
        self.type_ = type_
        self._adapter: TypeAdapter[T] = TypeAdapter(type_)

    @property
    def format(self) -> SerializationFormat:
        return SerializationFormat.PYDANTIC

    def dumps(self, value: T) -> bytes:
        try:
            return self._adapter.dump_json(value)
        except (PydanticValidationError, TypeError, ValueError) as e:
            raise CacheSerializationError(f"Cannot serialize value as {self.type_}: {e}")

    def loads(self, data: bytes) -> T:
        try:
            return self._adapter.validate_json(data)
        except PydanticValidationError as e:
            raise CacheSerializationError(
                f"Cached payload is not a valid {self.type_}",
                details={"errors": e.error_count()},
            )

    def validate(self, value: Any) -> T:
        """Check a value stored uncompressed against the type."""
        try:
            return self._adapter.validate_python(value)
        except PydanticValidationError as e:
            raise CacheSerializationError(
                f"Cached value is not a valid {self.type_}",
                details={"errors": e.error_count()},
            )
