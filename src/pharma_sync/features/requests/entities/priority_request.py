"""Prioritized request entities."""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable


class RequestPriority(str, Enum):
    """Request priority, most urgent first."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Dispatch order
PRIORITY_ORDER = (
    RequestPriority.CRITICAL,
    RequestPriority.HIGH,
    RequestPriority.MEDIUM,
    RequestPriority.LOW,
)


@dataclass
class PriorityRequest:
    """A request waiting for a concurrency slot."""
    id: str
    priority: RequestPriority
    request_fn: Callable[[], Awaitable[Any]]
    future: "asyncio.Future[Any]"
    enqueued_at: float
