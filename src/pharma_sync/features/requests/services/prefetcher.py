"""Behaviour-driven background prefetching."""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Tuple

from .request_orchestrator import Fetcher, RequestOrchestrator
from ...cache.entities.keys import CacheDurations, CacheTags

logger = logging.getLogger(__name__)

# Produces (key, fetcher) pairs for an entity the user is looking at
RelatedFetchers = Callable[[str, Optional[str]], List[Tuple[str, Fetcher]]]


@dataclass
class RelatedPrefetchRule:
    """Related reads worth warming when a user opens an entity."""
    entity: str
    related: RelatedFetchers
    description: str = ""


class SmartPrefetcher:
    """Warm the cache for reads a user is likely to make next.

    Actions are counted per name; once an action crosses the threshold the
    caller can enqueue the reads it leads to. The queue is processed one
    item at a time so prefetching never competes with foreground requests
    for more than one connection.
    """

    def __init__(
        self,
        orchestrator: RequestOrchestrator,
        ttl: float = CacheDurations.LONG,
        pause: float = 0.1,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.orchestrator = orchestrator
        self.ttl = ttl
        self.pause = pause
        self._sleep = sleep

        self._patterns: Dict[str, int] = {}
        self._queue: Deque[Tuple[str, Fetcher]] = deque()
        self._rules: Dict[str, List[RelatedPrefetchRule]] = {}
        self._worker: Optional[asyncio.Task] = None

    def record_action(self, action: str) -> None:
        self._patterns[action] = self._patterns.get(action, 0) + 1

    def should_prefetch(self, action: str, threshold: int = 3) -> bool:
        return self._patterns.get(action, 0) >= threshold

    def enqueue(self, key: str, fetcher: Fetcher) -> bool:
        """Queue a prefetch unless key is cached or already queued."""
        if self.orchestrator.store.has(key):
            return False
        if any(queued_key == key for queued_key, _ in self._queue):
            return False

        self._queue.append((key, fetcher))
        if self._worker is None or self._worker.done():
            self._worker = asyncio.ensure_future(self._process_queue())
        return True

    def register_rule(self, rule: RelatedPrefetchRule) -> None:
        self._rules.setdefault(rule.entity, []).append(rule)

    def prefetch_related(self, entity: str, outlet_id: Optional[str] = None) -> int:
        """Enqueue the reads registered for entity. Returns how many were queued."""
        queued = 0
        for rule in self._rules.get(entity, []):
            for key, fetcher in rule.related(entity, outlet_id):
                if self.enqueue(key, fetcher):
                    queued += 1
        return queued

    def queued_keys(self) -> List[str]:
        return [key for key, _ in self._queue]

    def patterns(self) -> Dict[str, int]:
        return dict(self._patterns)

    def clear_patterns(self) -> None:
        self._patterns.clear()

    async def drain(self) -> None:
        """Wait until the queue is empty."""
        while self._worker is not None and not self._worker.done():
            await self._worker

    async def stop(self) -> None:
        """Cancel the worker and drop everything still queued."""
        self._queue.clear()
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None

    async def _process_queue(self) -> None:
        while self._queue:
            key, fetcher = self._queue.popleft()
            try:
                await self.orchestrator.fetch_or_serve(
                    key,
                    fetcher,
                    ttl=self.ttl,
                    tags=[CacheTags.PREFETCHED],
                    retry_attempts=0,
                )
                logger.debug(f"Prefetched {key}")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # Prefetch is best effort; the foreground read will fetch again
                logger.warning(f"Prefetch failed for {key}: {e}")

            if self._queue and self.pause > 0:
                await self._sleep(self.pause)
