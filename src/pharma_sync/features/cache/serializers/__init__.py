"""Cache value serializers and compression."""

from .json_serializer import JsonCacheSerializer, CustomJSONEncoder, decode_json_object
from .pydantic_serializer import PydanticCacheSerializer
from .compression import compress, decompress

__all__ = [
    "JsonCacheSerializer",
    "CustomJSONEncoder",
    "decode_json_object",
    "PydanticCacheSerializer",
    "compress",
    "decompress",
]
