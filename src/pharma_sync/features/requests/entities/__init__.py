"""Request orchestration entities."""

from .batch import BatchRequest, BatchResponse
from .cancellation import CancellationToken, TokenEvent
from .pending_request import PendingRequest
from .priority_request import PRIORITY_ORDER, PriorityRequest, RequestPriority

__all__ = [
    "BatchRequest",
    "BatchResponse",
    "CancellationToken",
    "TokenEvent",
    "PendingRequest",
    "PRIORITY_ORDER",
    "PriorityRequest",
    "RequestPriority",
]
