"""FIFO queue deferring mutating operations while offline."""

import asyncio
import inspect
import logging
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Set

from .connectivity_monitor import ConnectivityMonitor
from ..entities.connectivity import ConnectivityEvent
from ..entities.queued_operation import (
    ErrorCallback,
    Operation,
    QueueEvent,
    QueuedOperation,
    SuccessCallback,
)
from ...cache.adapters.memory_store import CacheStore
from ...cache.entities.protocols import Clock
from ...cache.services.cache_invalidation import invalidate_related
from ...requests.retry.retry_policy import DEFAULT_RETRY_POLICIES, RetryPolicy, retry_call
from ....core.exceptions import QueueClosedError
from ....core.observers import ObserverRegistry, Subscription

logger = logging.getLogger(__name__)


def _consume(future: "asyncio.Future[Any]") -> None:
    # Deferred results may legitimately go unawaited
    if not future.cancelled():
        future.exception()


class OfflineQueue:
    """Runs mutations now when online, or replays them in order on reconnect.

    While offline, or while earlier operations are still waiting, new
    operations join the back of the queue. When the monitor reports that the
    connection is back the queue is drained one operation at a time; a
    failure settles that operation's own future and callbacks and the drain
    moves on.
    """

    def __init__(
        self,
        monitor: ConnectivityMonitor,
        retry_policy: Optional[RetryPolicy] = None,
        store: Optional[CacheStore] = None,
        clock: Clock = time.monotonic,
        sleep: Callable[[float], Any] = asyncio.sleep,
    ):
        self.monitor = monitor
        self.retry_policy = retry_policy or DEFAULT_RETRY_POLICIES["background"]
        self.store = store
        self._clock = clock
        self._sleep = sleep

        self._queue: Deque[QueuedOperation] = deque()
        self._drain_task: Optional[asyncio.Task] = None
        self._running: Set[asyncio.Task] = set()
        self._closed = False
        self._stats = {"replayed": 0, "failed": 0}
        self._events: ObserverRegistry[QueueEvent] = ObserverRegistry("offline queue")
        self._subscription = monitor.subscribe(ConnectivityEvent.ONLINE, self._on_online)

    def execute_when_online(
        self,
        operation: Operation,
        *,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        retryable: bool = True,
        entity: Optional[str] = None,
        outlet_id: Optional[str] = None,
    ) -> "asyncio.Future[Any]":
        """Run operation now or queue it; the returned future carries its outcome.

        Must be called from a running event loop.
        """
        if self._closed:
            raise QueueClosedError("Offline queue has been destroyed")

        loop = asyncio.get_running_loop()
        op = QueuedOperation(
            operation=operation,
            future=loop.create_future(),
            enqueued_at=self._clock(),
            on_success=on_success,
            on_error=on_error,
            retryable=retryable,
            entity=entity,
            outlet_id=outlet_id,
        )
        op.future.add_done_callback(_consume)

        # Queued work keeps its place ahead of anything submitted later
        if self.monitor.is_online and not self._queue and not self.draining:
            task = asyncio.ensure_future(self._replay(op))
            self._running.add(task)
            task.add_done_callback(self._running.discard)
        else:
            self._queue.append(op)
            logger.info(f"Queued operation {op.id} ({len(self._queue)} waiting for connection)")
            self._events.emit(QueueEvent.ENQUEUED, op)
            if self.monitor.is_online and not self.draining:
                self._start_drain()
        return op.future

    @property
    def draining(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    @property
    def queued_count(self) -> int:
        return len(self._queue)

    def pending_operations(self) -> List[Dict[str, Any]]:
        return [op.to_dict() for op in self._queue]

    def stats(self) -> Dict[str, Any]:
        return {
            "queue_length": len(self._queue),
            "is_online": self.monitor.is_online,
            "oldest_enqueued_at": self._queue[0].enqueued_at if self._queue else None,
            **self._stats,
        }

    async def drain(self) -> None:
        """Replay queued operations now, or wait for the drain in progress."""
        if not self.draining:
            self._start_drain()
        if self._drain_task is not None:
            await asyncio.shield(self._drain_task)

    def clear(self) -> int:
        """Reject every queued operation with QueueClosedError."""
        cleared = 0
        while self._queue:
            op = self._queue.popleft()
            if not op.future.done():
                op.future.set_exception(QueueClosedError(f"Operation {op.id} dropped from offline queue"))
            cleared += 1
        if cleared:
            logger.warning(f"Cleared {cleared} queued operations")
        return cleared

    async def destroy(self) -> None:
        """Detach from the monitor, reject everything queued and cancel running operations."""
        self._closed = True
        self._subscription.dispose()
        self.clear()
        if self._drain_task is not None and not self._drain_task.done():
            self._drain_task.cancel()
            try:
                await self._drain_task
            except asyncio.CancelledError:
                pass
        self._drain_task = None

        # Operations started immediately while online
        running = list(self._running)
        for task in running:
            task.cancel()
        if running:
            await asyncio.gather(*running, return_exceptions=True)
            logger.info(f"Cancelled {len(running)} running operations")
        self._running.clear()
        self._events.clear()

    def subscribe(self, event: QueueEvent, callback: Callable[..., Any]) -> Subscription:
        return self._events.subscribe(event, callback)

    async def _on_online(self) -> None:
        if self._queue:
            logger.info(f"Connection restored, replaying {len(self._queue)} queued operations")
            await self.drain()

    def _start_drain(self) -> None:
        self._drain_task = asyncio.ensure_future(self._drain_loop())

    async def _drain_loop(self) -> None:
        while self._queue and self.monitor.is_online:
            op = self._queue.popleft()
            await self._replay(op)

        if not self._queue:
            self._events.emit(QueueEvent.DRAINED)
        else:
            logger.info(f"Connection lost during replay, {len(self._queue)} operations remain queued")

    async def _replay(self, op: QueuedOperation) -> None:
        if op.future.done():
            # The caller cancelled the deferred result
            logger.debug(f"Skipping operation {op.id}: result already settled")
            return

        policy = self.retry_policy if op.retryable else self.retry_policy.with_overrides(retry_attempts=0)
        try:
            result = await retry_call(op.operation, policy, sleep=self._sleep, label=f"Operation {op.id}")
        except asyncio.CancelledError:
            if not op.future.done():
                op.future.cancel()
            raise
        except Exception as e:
            self._stats["failed"] += 1
            logger.error(f"Operation {op.id} failed: {e}")
            await self._invoke(op.on_error, e)
            if not op.future.done():
                op.future.set_exception(e)
            self._events.emit(QueueEvent.FAILED, op, e)
            return

        self._stats["replayed"] += 1
        if self.store is not None and op.entity:
            invalidate_related(self.store, op.entity, op.outlet_id)
        await self._invoke(op.on_success, result)
        if not op.future.done():
            op.future.set_result(result)
        self._events.emit(QueueEvent.REPLAYED, op, result)

    @staticmethod
    async def _invoke(callback: Optional[Callable[[Any], Any]], value: Any) -> None:
        if callback is None:
            return
        try:
            result = callback(value)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Error in offline queue callback: {e}")
