"""Offline feature for pharma-sync.

- entities/: Connectivity state and queued operations
- adapters/: HTTP reachability probe
- services/: Connectivity monitor and FIFO replay queue
"""

from .entities import (
    ConnectivityConfig,
    ConnectivityEvent,
    ConnectivityState,
    QueueEvent,
    QueuedOperation,
)
from .adapters import HttpReachabilityProbe
from .services import ConnectivityMonitor, OfflineQueue

__all__ = [
    # Entities
    "ConnectivityConfig",
    "ConnectivityEvent",
    "ConnectivityState",
    "QueueEvent",
    "QueuedOperation",

    # Adapters
    "HttpReachabilityProbe",

    # Services
    "ConnectivityMonitor",
    "OfflineQueue",
]
