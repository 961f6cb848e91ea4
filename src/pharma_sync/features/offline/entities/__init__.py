"""Offline feature entities."""

from .connectivity import ConnectivityConfig, ConnectivityEvent, ConnectivityState
from .queued_operation import Operation, QueueEvent, QueuedOperation

__all__ = [
    "ConnectivityConfig",
    "ConnectivityEvent",
    "ConnectivityState",
    "Operation",
    "QueueEvent",
    "QueuedOperation",
]
