"""JSON cache serializer with extended type support."""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict
from uuid import UUID

from pydantic import BaseModel

from ..entities.protocols import SerializationFormat
from ....core.exceptions import CacheSerializationError


class CustomJSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for extended type support."""

    def default(self, obj: Any) -> Any:
        """Handle non-standard JSON types."""
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json")
        elif isinstance(obj, datetime):
            return {"__datetime__": obj.isoformat()}
        elif isinstance(obj, date):
            return {"__date__": obj.isoformat()}
        elif isinstance(obj, Decimal):
            return {"__decimal__": str(obj)}
        elif isinstance(obj, UUID):
            return {"__uuid__": str(obj)}
        elif isinstance(obj, (set, frozenset)):
            return {"__set__": list(obj)}
        elif isinstance(obj, bytes):
            return {"__bytes__": obj.hex()}
        elif hasattr(obj, "__dict__"):
            return {"__object__": {
                "class": obj.__class__.__name__,
                "data": obj.__dict__,
            }}

        # Fallback to string representation
        return {"__repr__": repr(obj)}


def decode_json_object(obj: Dict[str, Any]) -> Any:
    """Decode custom JSON objects back to Python types."""
    if "__datetime__" in obj:
        return datetime.fromisoformat(obj["__datetime__"])
    elif "__date__" in obj:
        return date.fromisoformat(obj["__date__"])
    elif "__decimal__" in obj:
        return Decimal(obj["__decimal__"])
    elif "__uuid__" in obj:
        return UUID(obj["__uuid__"])
    elif "__set__" in obj:
        return set(obj["__set__"])
    elif "__bytes__" in obj:
        return bytes.fromhex(obj["__bytes__"])
    elif "__object__" in obj:
        # Arbitrary objects come back as their attribute dict
        return obj["__object__"]["data"]

    return obj


class JsonCacheSerializer:
    """Compact JSON serializer, the store's default."""

    def __init__(self, ensure_ascii: bool = False, sort_keys: bool = False):
        self._ensure_ascii = ensure_ascii
        self._sort_keys = sort_keys

    @property
    def format(self) -> SerializationFormat:
        return SerializationFormat.JSON

    def dumps(self, value: Any) -> bytes:
        """Serialize value to UTF-8 JSON bytes."""
        try:
            return json.dumps(
                value,
                cls=CustomJSONEncoder,
                ensure_ascii=self._ensure_ascii,
                separators=(",", ":"),
                sort_keys=self._sort_keys,
            ).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise CacheSerializationError(f"JSON serialization failed: {e}")

    def loads(self, data: bytes) -> Any:
        """Deserialize JSON bytes."""
        try:
            return json.loads(data.decode("utf-8"), object_hook=decode_json_object)
        except (UnicodeDecodeError, ValueError) as e:
            raise CacheSerializationError(f"JSON deserialization failed: {e}")

    def validate(self, value: Any) -> Any:
        """Raw values are returned as stored; JSON carries no schema to check."""
        return value
