"""Exceptions module for pharma-sync."""

from .base import (
    PharmaSyncError,
    create_error_response,
)

from .infrastructure import (
    # Cache Errors
    CacheError,
    CacheKeyError,
    CacheSerializationError,

    # Remote API Errors
    ApiError,
    RequestCancelledError,
    NETWORK_ERROR,
    TIMEOUT,
    UNKNOWN_ERROR,

    # Validation Errors
    ValidationError,
    PaginationError,

    # Offline Queue Errors
    QueueClosedError,
)

__all__ = [
    "PharmaSyncError",
    "create_error_response",
    "CacheError",
    "CacheKeyError",
    "CacheSerializationError",
    "ApiError",
    "RequestCancelledError",
    "NETWORK_ERROR",
    "TIMEOUT",
    "UNKNOWN_ERROR",
    "ValidationError",
    "PaginationError",
    "QueueClosedError",
]
