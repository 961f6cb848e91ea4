"""Paginated loading through the request orchestrator."""

import asyncio
import logging
import re
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Tuple

from .pagination_controller import PaginationController
from ..entities.requests import ServerPaginationParams
from ..entities.responses import PaginatedResult
from ...requests.services.request_orchestrator import RequestOrchestrator

logger = logging.getLogger(__name__)

PageFetcher = Callable[[ServerPaginationParams], Awaitable[Any]]


def unpack_page(payload: Any) -> Tuple[List[Any], Optional[int]]:
    """Split a fetch result into items and the reported total.

    Accepts a plain list or a mapping with ``data`` and optional ``total``.
    """
    if isinstance(payload, dict):
        items = list(payload.get("data") or [])
        total = payload.get("total")
        return items, int(total) if total is not None else None
    return list(payload or []), None


class PaginatedDataSource:
    """Loads pages for a controller, caching each query under its own key.

    In server mode every distinct query is cached as
    ``<base_key>:<params fragment>`` and the fetcher receives the server
    parameters. In client mode the full list is cached once as
    ``<base_key>:all`` and sliced locally.
    """

    def __init__(
        self,
        base_key: str,
        fetcher: PageFetcher,
        orchestrator: RequestOrchestrator,
        controller: Optional[PaginationController] = None,
        server_side: bool = True,
        ttl: Optional[float] = None,
        tags: Optional[Iterable[str]] = None,
        prefetch_next: bool = False,
    ):
        self.base_key = base_key
        self.fetcher = fetcher
        self.orchestrator = orchestrator
        self.controller = controller or PaginationController()
        self.server_side = server_side
        self.ttl = ttl
        self.tags = list(tags or [])
        self.prefetch_next = prefetch_next
        self._prefetch_task: Optional[asyncio.Task] = None

    def cache_key(self, params: Optional[ServerPaginationParams] = None) -> str:
        if not self.server_side:
            return f"{self.base_key}:all"
        params = params or self.controller.to_server_params()
        return f"{self.base_key}:{params.cache_key_fragment()}"

    async def load(self) -> PaginatedResult:
        """Fetch (or serve from cache) the current page."""
        if not self.server_side:
            payload = await self._fetch(self.controller.to_server_params())
            items, _ = unpack_page(payload)
            self.controller.set_total(len(items))
            return self.controller.slice(items)

        params = self.controller.to_server_params()
        payload = await self._fetch(params)
        items, total = unpack_page(payload)
        self.controller.set_total(total if total is not None else params.offset + len(items))

        if self.prefetch_next and self.controller.state.has_next:
            self._schedule_prefetch()

        return PaginatedResult(items=items, state=self.controller.state)

    async def refresh(self) -> PaginatedResult:
        """Drop every cached page of this source and load again."""
        removed = self.orchestrator.invalidate(f"^{re.escape(self.base_key)}:", by="pattern")
        logger.debug(f"Refreshing {self.base_key}: dropped {removed} cached pages")
        return await self.load()

    async def wait_for_prefetch(self) -> None:
        if self._prefetch_task is not None:
            await self._prefetch_task

    def _fetch(self, params: ServerPaginationParams) -> Awaitable[Any]:
        return self.orchestrator.fetch_or_serve(
            self.cache_key(params),
            lambda: self.fetcher(params),
            ttl=self.ttl,
            tags=self.tags,
        )

    def _schedule_prefetch(self) -> None:
        current = self.controller.to_server_params()
        next_params = ServerPaginationParams(
            page=current.page + 1,
            limit=current.limit,
            sort_by=current.sort_by,
            sort_order=current.sort_order,
            search=current.search,
            filters=dict(current.filters),
        )
        self._prefetch_task = asyncio.ensure_future(self._prefetch(next_params))

    async def _prefetch(self, params: ServerPaginationParams) -> None:
        try:
            await self._fetch(params)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug(f"Prefetch of {self.cache_key(params)} failed: {e}")
