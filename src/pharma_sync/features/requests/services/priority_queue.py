"""Concurrency-limited request queue ordered by priority."""

import asyncio
import logging
import time
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, Set, TypeVar

from ..entities.priority_request import PRIORITY_ORDER, PriorityRequest, RequestPriority
from ...cache.entities.protocols import Clock
from ....core.exceptions import QueueClosedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestPriorityQueue:
    """Runs at most ``max_concurrent`` requests at once.

    When a slot frees up the oldest request of the most urgent non-empty
    priority starts next. Requests of equal priority run in submission order.
    """

    def __init__(self, max_concurrent: int = 3, clock: Clock = time.monotonic):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")

        self.max_concurrent = max_concurrent
        self._clock = clock
        self._queues: Dict[RequestPriority, Deque[PriorityRequest]] = {
            priority: deque() for priority in PRIORITY_ORDER
        }
        self._active: Set[asyncio.Task] = set()

    async def add_request(
        self,
        request_id: str,
        request_fn: Callable[[], Awaitable[T]],
        priority: RequestPriority = RequestPriority.MEDIUM,
    ) -> T:
        """Queue request_fn and return its result once it has run."""
        loop = asyncio.get_running_loop()
        request = PriorityRequest(
            id=request_id,
            priority=RequestPriority(priority),
            request_fn=request_fn,
            future=loop.create_future(),
            enqueued_at=self._clock(),
        )
        self._queues[request.priority].append(request)
        self._dispatch()
        return await request.future

    @property
    def active_count(self) -> int:
        return len(self._active)

    @property
    def processing(self) -> bool:
        return bool(self._active)

    def queued_count(self, priority: Optional[RequestPriority] = None) -> int:
        if priority is not None:
            return len(self._queues[RequestPriority(priority)])
        return sum(len(queue) for queue in self._queues.values())

    def stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = {priority.value: len(self._queues[priority]) for priority in PRIORITY_ORDER}
        stats["total"] = self.queued_count()
        stats["active"] = len(self._active)
        stats["processing"] = self.processing
        return stats

    def clear(self) -> int:
        """Reject every request still waiting for a slot. Running ones finish."""
        cleared = 0
        for queue in self._queues.values():
            while queue:
                request = queue.popleft()
                if not request.future.done():
                    request.future.set_exception(
                        QueueClosedError(f"Request {request.id} dropped from priority queue")
                    )
                cleared += 1
        if cleared:
            logger.warning(f"Cleared {cleared} queued requests")
        return cleared

    def _next_request(self) -> Optional[PriorityRequest]:
        for priority in PRIORITY_ORDER:
            queue = self._queues[priority]
            while queue:
                request = queue.popleft()
                # The caller stopped waiting before a slot was free
                if not request.future.done():
                    return request
        return None

    def _dispatch(self) -> None:
        while len(self._active) < self.max_concurrent:
            request = self._next_request()
            if request is None:
                return
            task = asyncio.ensure_future(self._execute(request))
            self._active.add(task)
            task.add_done_callback(self._on_finished)

    def _on_finished(self, task: asyncio.Task) -> None:
        self._active.discard(task)
        self._dispatch()

    @staticmethod
    async def _execute(request: PriorityRequest) -> None:
        logger.debug(f"Starting {request.priority.value} request {request.id}")
        try:
            result = await request.request_fn()
        except asyncio.CancelledError:
            if not request.future.done():
                request.future.cancel()
            raise
        except Exception as e:
            if not request.future.done():
                request.future.set_exception(e)
            return

        if not request.future.done():
            request.future.set_result(result)
