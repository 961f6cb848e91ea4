"""Requests feature for pharma-sync.

- entities/: Pending, prioritized and batched requests, cancellation tokens
- retry/: Linear backoff policy and error classification
- services/: Cache-first orchestrator, smart prefetcher, priority queue and
  batch manager
"""

from .entities import (
    BatchRequest,
    BatchResponse,
    CancellationToken,
    PendingRequest,
    RequestPriority,
)
from .retry import RetryPolicy, classify_error, is_retryable_error
from .services import (
    RequestOrchestrator,
    SmartPrefetcher,
    RelatedPrefetchRule,
    RequestPriorityQueue,
    BatchRequestManager,
)

__all__ = [
    # Entities
    "BatchRequest",
    "BatchResponse",
    "CancellationToken",
    "PendingRequest",
    "RequestPriority",

    # Retry
    "RetryPolicy",
    "classify_error",
    "is_retryable_error",

    # Services
    "RequestOrchestrator",
    "SmartPrefetcher",
    "RelatedPrefetchRule",
    "RequestPriorityQueue",
    "BatchRequestManager",
]
