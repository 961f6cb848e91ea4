"""Gzip compression for cache payloads."""

import gzip
import zlib

from ....core.exceptions import CacheSerializationError


def compress(data: bytes, level: int = 6) -> bytes:
    return gzip.compress(data, compresslevel=level)


def decompress(data: bytes) -> bytes:
    """Reverse ``compress``; corrupted input raises CacheSerializationError."""
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise CacheSerializationError(f"Failed to decompress cache data: {e}")
