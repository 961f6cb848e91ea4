"""Features module for pharma-sync.

Each feature owns its entities, adapters and services:
- cache: Bounded in-memory cache store
- requests: Cache-first orchestration, coalescing and retries
- pagination: Pagination state machine and data source
- offline: Connectivity monitoring and deferred mutations
"""

from .cache import CacheStore
from .requests import RequestOrchestrator
from .pagination import PaginationController
from .offline import ConnectivityMonitor, OfflineQueue

__all__ = [
    "CacheStore",
    "RequestOrchestrator",
    "PaginationController",
    "ConnectivityMonitor",
    "OfflineQueue",
]
