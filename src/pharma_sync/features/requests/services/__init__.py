"""Request orchestration services."""

from .request_orchestrator import RequestOrchestrator, Fetcher
from .prefetcher import SmartPrefetcher, RelatedPrefetchRule
from .priority_queue import RequestPriorityQueue
from .batch_manager import BatchRequestManager, BatchExecutor

__all__ = [
    "RequestOrchestrator",
    "Fetcher",
    "SmartPrefetcher",
    "RelatedPrefetchRule",
    "RequestPriorityQueue",
    "BatchRequestManager",
    "BatchExecutor",
]
