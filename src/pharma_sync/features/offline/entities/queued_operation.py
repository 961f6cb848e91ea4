"""Deferred mutating operations."""

import asyncio
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

Operation = Callable[[], Awaitable[Any]]
SuccessCallback = Callable[[Any], Any]
ErrorCallback = Callable[[BaseException], Any]


class QueueEvent(str, Enum):
    """Events published by the offline queue."""
    ENQUEUED = "enqueued"
    REPLAYED = "replayed"
    FAILED = "failed"
    DRAINED = "drained"


@dataclass
class QueuedOperation:
    """A mutating call captured while offline, replayed once on reconnect.

    ``future`` settles with the operation's result or error when it is
    replayed, or with QueueClosedError if the queue is cleared first.
    """
    operation: Operation
    future: "asyncio.Future[Any]"
    enqueued_at: float
    on_success: Optional[SuccessCallback] = None
    on_error: Optional[ErrorCallback] = None
    retryable: bool = True
    entity: Optional[str] = None
    outlet_id: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "enqueued_at": self.enqueued_at,
            "retryable": self.retryable,
            "entity": self.entity,
            "outlet_id": self.outlet_id,
        }
