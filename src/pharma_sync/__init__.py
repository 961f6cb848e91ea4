"""pharma-sync - client-side data synchronization for pharmacy point of sale.

Provides a bounded request cache, a cache-first request orchestrator with
coalescing and retries, a pagination state machine and an offline queue
that replays mutations on reconnect.

Logging is not configured on import; call ``setup_logging()`` from the
application entry point.
"""

from .__version__ import __version__

# Configuration
from .config import (
    SyncSettings,
    get_settings,
    LoggingConfig,
    setup_logging,
)

from .core.exceptions import (
    # Base Exception
    PharmaSyncError,

    # Feature Exceptions
    CacheError,
    CacheSerializationError,
    ApiError,
    RequestCancelledError,
    ValidationError,
    PaginationError,
    QueueClosedError,

    # Utility Functions
    create_error_response,
)

from .core.observers import ObserverRegistry, Subscription

# Cache
from .features.cache import (
    CacheStore,
    CacheStoreConfig,
    CacheStats,
    CacheEvent,
    CacheTags,
    CacheDurations,
    JsonCacheSerializer,
    PydanticCacheSerializer,
    build_cache_key,
    invalidate_related,
)

# Requests
from .features.requests import (
    RequestOrchestrator,
    RetryPolicy,
    CancellationToken,
    SmartPrefetcher,
    RelatedPrefetchRule,
    RequestPriority,
    RequestPriorityQueue,
    BatchRequest,
    BatchResponse,
    BatchRequestManager,
    is_retryable_error,
)

# Pagination
from .features.pagination import (
    PaginationController,
    PaginationEvent,
    PaginationState,
    PaginatedDataSource,
    ServerPaginationParams,
    SortOrder,
    paginate_data,
)

# Offline
from .features.offline import (
    ConnectivityConfig,
    ConnectivityEvent,
    ConnectivityMonitor,
    ConnectivityState,
    HttpReachabilityProbe,
    OfflineQueue,
    QueueEvent,
)

__all__ = [
    "__version__",

    # Configuration
    "SyncSettings",
    "get_settings",
    "LoggingConfig",
    "setup_logging",

    # Exceptions
    "PharmaSyncError",
    "CacheError",
    "CacheSerializationError",
    "ApiError",
    "RequestCancelledError",
    "ValidationError",
    "PaginationError",
    "QueueClosedError",
    "create_error_response",

    # Core
    "ObserverRegistry",
    "Subscription",

    # Cache
    "CacheStore",
    "CacheStoreConfig",
    "CacheStats",
    "CacheEvent",
    "CacheTags",
    "CacheDurations",
    "JsonCacheSerializer",
    "PydanticCacheSerializer",
    "build_cache_key",
    "invalidate_related",

    # Requests
    "RequestOrchestrator",
    "RetryPolicy",
    "CancellationToken",
    "SmartPrefetcher",
    "RelatedPrefetchRule",
    "RequestPriority",
    "RequestPriorityQueue",
    "BatchRequest",
    "BatchResponse",
    "BatchRequestManager",
    "is_retryable_error",

    # Pagination
    "PaginationController",
    "PaginationEvent",
    "PaginationState",
    "PaginatedDataSource",
    "ServerPaginationParams",
    "SortOrder",
    "paginate_data",

    # Offline
    "ConnectivityConfig",
    "ConnectivityEvent",
    "ConnectivityMonitor",
    "ConnectivityState",
    "HttpReachabilityProbe",
    "OfflineQueue",
    "QueueEvent",
]
