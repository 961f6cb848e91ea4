"""Collects small requests and sends them to the API in batches."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Set, Tuple

from ..entities.batch import BatchRequest, BatchResponse
from ....core.exceptions import ApiError

logger = logging.getLogger(__name__)

BatchExecutor = Callable[[List[BatchRequest]], Awaitable[List[BatchResponse]]]


def _consume(future: "asyncio.Future[Any]") -> None:
    if not future.cancelled():
        future.exception()


class BatchRequestManager:
    """Groups requests into one executor call per batch.

    A batch is sent as soon as ``batch_size`` requests are waiting, or
    ``batch_delay`` seconds after the first request of a partial batch.
    The executor receives the requests and returns one ``BatchResponse``
    per request id; an executor failure rejects every request in its batch.
    """

    def __init__(self, executor: BatchExecutor, batch_size: int = 10, batch_delay: float = 0.05):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if batch_delay < 0:
            raise ValueError("batch_delay must be non-negative")

        self.executor = executor
        self.batch_size = batch_size
        self.batch_delay = batch_delay

        self._queue: List[Tuple[BatchRequest, "asyncio.Future[BatchResponse]"]] = []
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()
        self._stats = {"batches": 0, "requests": 0, "failed_batches": 0}

    def add_to_batch(self, request: BatchRequest) -> "asyncio.Future[BatchResponse]":
        """Queue request; the returned future resolves with its response.

        Must be called from a running event loop.
        """
        loop = asyncio.get_running_loop()
        future: "asyncio.Future[BatchResponse]" = loop.create_future()
        future.add_done_callback(_consume)
        self._queue.append((request, future))

        if len(self._queue) >= self.batch_size:
            self._start(self._process_batch())
        elif self._timer is None:
            self._timer = loop.call_later(self.batch_delay, self._on_timer)
        return future

    async def flush(self) -> int:
        """Send everything queued now. Returns the number of requests sent."""
        sent = 0
        while self._queue:
            sent += await self._process_batch()
        return sent

    def clear(self) -> int:
        """Drop queued requests, cancelling their futures."""
        self._cancel_timer()
        cleared = len(self._queue)
        for _, future in self._queue:
            future.cancel()
        self._queue = []
        return cleared

    async def close(self) -> None:
        """Drop queued requests and wait for batches already sent."""
        self.clear()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    @property
    def queued_count(self) -> int:
        return len(self._queue)

    def stats(self):
        return {"queued": len(self._queue), "in_flight": len(self._tasks), **self._stats}

    def _start(self, coro: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _on_timer(self) -> None:
        self._timer = None
        self._start(self._process_batch())

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _process_batch(self) -> int:
        self._cancel_timer()
        batch = self._queue[:self.batch_size]
        self._queue = self._queue[self.batch_size:]
        if self._queue:
            # Leftovers wait for their own delay, or for the next full batch
            self._timer = asyncio.get_running_loop().call_later(self.batch_delay, self._on_timer)
        if not batch:
            return 0

        self._stats["batches"] += 1
        self._stats["requests"] += len(batch)
        try:
            responses = await self.executor([request for request, _ in batch])
        except asyncio.CancelledError:
            for _, future in batch:
                future.cancel()
            raise
        except Exception as e:
            self._stats["failed_batches"] += 1
            logger.error(f"Batch of {len(batch)} requests failed: {e}")
            for _, future in batch:
                if not future.done():
                    future.set_exception(e)
            return len(batch)

        by_id = {response.id: response for response in responses}
        for request, future in batch:
            if future.done():
                continue
            response = by_id.get(request.id)
            if response is None:
                future.set_exception(ApiError(f"No response for batch request {request.id} ({request.endpoint})"))
            else:
                future.set_result(response)

        logger.debug(f"Sent batch of {len(batch)} requests")
        return len(batch)
