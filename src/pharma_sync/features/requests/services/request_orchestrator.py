"""Cache-first request orchestration with coalescing and retries."""

import asyncio
import logging
import re
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from ..entities.cancellation import CancellationToken
from ..entities.pending_request import PendingRequest
from ..entities.priority_request import RequestPriority
from .priority_queue import RequestPriorityQueue
from ..retry.retry_policy import RetryPolicy, classify_error
from ...cache.adapters.memory_store import CacheStore
from ...cache.entities.protocols import Clock
from ....core.exceptions import CacheError, RequestCancelledError, ValidationError

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[Any]]

INVALIDATE_MODES = ("auto", "key", "tag", "pattern")

_MISSING = object()


class RequestOrchestrator:
    """Serve reads from the cache, coalescing concurrent misses per key.

    Concurrent ``fetch_or_serve`` calls for a key that is not cached share a
    single underlying fetcher invocation. Retryable failures are retried
    with linear backoff before the error reaches any caller.
    With a ``priority_queue`` every fetcher call waits for a slot there.
    """

    def __init__(
        self,
        store: CacheStore,
        retry_policy: Optional[RetryPolicy] = None,
        default_ttl: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
        priority_queue: Optional[RequestPriorityQueue] = None,
    ):
        self.store = store
        self.priority_queue = priority_queue
        self.retry_policy = retry_policy or RetryPolicy()
        self.default_ttl = default_ttl
        self._sleep = sleep
        self._clock = clock

        self._pending: Dict[str, PendingRequest] = {}
        self._stats = {
            "network_calls": 0,
            "retries": 0,
            "coalesced": 0,
            "cancelled": 0,
        }

    async def fetch_or_serve(
        self,
        key: str,
        fetcher: Fetcher,
        *,
        ttl: Optional[float] = None,
        tags: Optional[Iterable[str]] = None,
        retry_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        cancel_token: Optional[CancellationToken] = None,
        priority: RequestPriority = RequestPriority.MEDIUM,
    ) -> Any:
        """Return the cached value for key, or fetch it exactly once.

        Raises the fetcher's final error after retries are exhausted, or
        RequestCancelledError when cancel_token fires first.
        """
        if cancel_token is not None:
            cancel_token.raise_if_cancelled(key)

        cached = self.store.get(key, _MISSING)
        if cached is not _MISSING:
            logger.debug(f"Serving {key} from cache")
            return cached

        # No await between lookup and registration: one PendingRequest per key
        pending = self._pending.get(key)
        if pending is None:
            policy = self.retry_policy.with_overrides(retry_attempts, retry_delay)
            pending = PendingRequest(key=key, started_at=self._clock())
            pending.task = asyncio.ensure_future(
                self._execute(pending, fetcher, policy, ttl, tags, priority)
            )
            pending.task.add_done_callback(self._consume_result)
            self._pending[key] = pending
        else:
            self._stats["coalesced"] += 1
            logger.debug(f"Joining in-flight request for {key}")

        pending.subscribers += 1
        try:
            if cancel_token is None:
                # Shielded: a caller that goes away does not abort the shared fetch
                return await asyncio.shield(pending.task)
            return await self._wait_cancellable(pending, cancel_token)
        finally:
            pending.subscribers -= 1

    async def mutate(
        self,
        key: str,
        new_value: Any,
        *,
        ttl: Optional[float] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Any:
        """Optimistically write new_value into the cache."""
        self.store.set(key, new_value, ttl=self._ttl(ttl), tags=tags)
        return new_value

    def invalidate(self, target: str, *, by: str = "auto") -> int:
        """Invalidate by exact key, tag or regex pattern.

        ``auto`` deletes the key when present, otherwise invalidates the tag
        when any entry carries it, otherwise treats target as a pattern.
        """
        if by not in INVALIDATE_MODES:
            raise ValidationError(
                f"Unknown invalidation mode: {by}",
                details={"allowed": list(INVALIDATE_MODES)},
            )

        if by == "key" or (by == "auto" and self.store.peek(target) is not None):
            return int(self.store.delete(target))

        if by == "tag" or (by == "auto" and self._tag_in_use(target)):
            return self.store.invalidate_by_tag(target)

        try:
            return self.store.invalidate_by_pattern(target)
        except re.error as e:
            raise ValidationError(f"Invalid invalidation pattern {target!r}: {e}")

    async def refetch(self, key: str, fetcher: Fetcher, **options: Any) -> Any:
        """Drop the cached value and fetch again."""
        self.store.delete(key)
        return await self.fetch_or_serve(key, fetcher, **options)

    def reset(self, key: str) -> bool:
        return self.store.delete(key)

    def has_pending(self, key: str) -> bool:
        return key in self._pending

    def pending_count(self) -> int:
        return len(self._pending)

    def stats(self) -> Dict[str, Any]:
        return {
            "cache": self.store.stats().to_dict(),
            "pending": len(self._pending),
            **self._stats,
        }

    def clear(self) -> None:
        """Drop cached data. In-flight requests keep running."""
        self.store.clear()

    async def _wait_cancellable(self, pending: PendingRequest, token: CancellationToken) -> Any:
        waiter = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({pending.task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()

        if pending.task.done():
            return pending.task.result()

        self._stats["cancelled"] += 1
        # This subscriber is still counted; it is the last one when the count is 1
        if pending.subscribers <= 1:
            logger.info(f"Aborting request for {pending.key}: all subscribers cancelled")
            if self._pending.get(pending.key) is pending:
                del self._pending[pending.key]
            pending.task.cancel()
        raise RequestCancelledError(pending.key)

    async def _execute(
        self,
        pending: PendingRequest,
        fetcher: Fetcher,
        policy: RetryPolicy,
        ttl: Optional[float],
        tags: Optional[Iterable[str]],
        priority: RequestPriority,
    ) -> Any:
        try:
            value = await self._call_with_retry(pending, fetcher, policy, priority)
            try:
                self.store.set(pending.key, value, ttl=self._ttl(ttl), tags=tags)
            except CacheError as e:
                logger.warning(f"Fetched {pending.key} but could not cache it: {e.message}")
            return value
        finally:
            if self._pending.get(pending.key) is pending:
                del self._pending[pending.key]

    async def _call_with_retry(
        self,
        pending: PendingRequest,
        fetcher: Fetcher,
        policy: RetryPolicy,
        priority: RequestPriority,
    ) -> Any:
        retries = 0
        while True:
            pending.attempts += 1
            self._stats["network_calls"] += 1
            try:
                if self.priority_queue is None:
                    return await fetcher()
                return await self.priority_queue.add_request(pending.key, fetcher, priority)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if not policy.should_retry(e, retries):
                    if retries:
                        logger.warning(f"Request {pending.key} failed after {retries} retries: {e}")
                    raise

                retries += 1
                self._stats["retries"] += 1
                delay = policy.delay_for(retries)
                logger.info(
                    f"Request {pending.key} failed with {classify_error(e)}, "
                    f"retry {retries}/{policy.retry_attempts} in {delay}s"
                )
                await self._sleep(delay)

    def _ttl(self, ttl: Optional[float]) -> Optional[float]:
        return self.default_ttl if ttl is None else ttl

    def _tag_in_use(self, tag: str) -> bool:
        return any(entry.has_tag(tag) for _, entry in self.store.entries())

    @staticmethod
    def _consume_result(task: "asyncio.Task[Any]") -> None:
        # Retrieve the outcome so a fetch abandoned by every subscriber does not warn
        if not task.cancelled():
            task.exception()
