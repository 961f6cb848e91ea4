"""Offline resilience services."""

from .connectivity_monitor import ConnectivityMonitor, Probe
from .offline_queue import OfflineQueue

__all__ = [
    "ConnectivityMonitor",
    "Probe",
    "OfflineQueue",
]
