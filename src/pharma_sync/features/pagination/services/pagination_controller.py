"""Pagination state machine."""

import logging
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, TypeVar

from ..entities.requests import ServerPaginationParams, SortOrder
from ..entities.responses import PaginatedResult, PaginationState
from ....core.exceptions import PaginationError
from ....core.observers import ObserverRegistry, Subscription

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PaginationEvent(str, Enum):
    CHANGED = "changed"


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


class PaginationController:
    """Page, page size, sort, search and filter state for one list view.

    The same transitions drive client-side slicing (``slice``) and
    server-side queries (``to_server_params``). After every transition the
    page lies in ``[1, max(total_pages, 1)]``; subscribers are notified only
    when the state actually changed.
    """

    def __init__(
        self,
        page: int = 1,
        page_size: int = 20,
        total: int = 0,
        sort_field: Optional[str] = None,
        sort_order: SortOrder = SortOrder.ASC,
        search: str = "",
        filters: Optional[Mapping[str, Any]] = None,
        max_page_size: Optional[int] = None,
    ):
        self.max_page_size = max_page_size
        self._validate_page_size(page_size)

        self._state = PaginationState(
            page=1,
            page_size=page_size,
            total=max(0, total),
            sort_field=sort_field,
            sort_order=SortOrder(sort_order),
            search=search or "",
            filters={k: v for k, v in (filters or {}).items() if not _is_blank(v)},
        )
        self._state = replace(self._state, page=self._clamp(page, self._state))
        self._events: ObserverRegistry[PaginationEvent] = ObserverRegistry("pagination")

    @property
    def state(self) -> PaginationState:
        return self._state

    # Shortcuts for the common read paths
    @property
    def page(self) -> int:
        return self._state.page

    @property
    def page_size(self) -> int:
        return self._state.page_size

    @property
    def total(self) -> int:
        return self._state.total

    @property
    def total_pages(self) -> int:
        return self._state.total_pages

    # Navigation

    def set_page(self, page: int) -> None:
        self._update(page=self._clamp(page, self._state))

    go_to_page = set_page

    def next_page(self) -> None:
        if self._state.has_next:
            self.set_page(self._state.page + 1)

    def prev_page(self) -> None:
        if self._state.has_prev:
            self.set_page(self._state.page - 1)

    def first_page(self) -> None:
        self.set_page(1)

    def last_page(self) -> None:
        self.set_page(self._state.total_pages)

    # Window and criteria

    def set_page_size(self, page_size: int) -> None:
        """Change the window size; the old page index no longer applies."""
        self._validate_page_size(page_size)
        self._update(page_size=page_size, page=1)

    def set_sort(self, field: str, order: Optional[SortOrder] = None) -> None:
        """Sort by field, toggling direction when re-selecting the same field."""
        if field == self._state.sort_field and order is None:
            self._update(sort_order=self._state.sort_order.toggled(), page=1)
        else:
            self._update(sort_field=field, sort_order=SortOrder(order or SortOrder.ASC), page=1)

    def set_search(self, query: str) -> None:
        self._update(search=query or "", page=1)

    def set_filter(self, key: str, value: Any) -> None:
        """Set one filter; None or an empty string removes it."""
        filters = dict(self._state.filters)
        if _is_blank(value):
            filters.pop(key, None)
        else:
            filters[key] = value
        self._update(filters=filters, page=1)

    def set_filters(self, filters: Mapping[str, Any]) -> None:
        """Replace all filters with a copy of filters, blank values included."""
        self._update(filters=dict(filters), page=1)

    def clear_filters(self) -> None:
        """Drop all filters and the search query."""
        self._update(filters={}, search="", page=1)

    def set_total(self, total: int) -> None:
        """Record the item count reported by the last fetch."""
        state = replace(self._state, total=max(0, total))
        self._update(total=state.total, page=self._clamp(state.page, state))

    def reset(self) -> None:
        """Back to page 1 with no sort, search or filters."""
        self._update(page=1, sort_field=None, sort_order=SortOrder.ASC, search="", filters={})

    # Consumption

    def slice(self, items: Sequence[T]) -> PaginatedResult[T]:
        """Client-side window over a fully loaded list."""
        state = self._state
        start = (state.page - 1) * state.page_size
        return PaginatedResult(items=list(items[start:start + state.page_size]), state=state)

    def to_server_params(self) -> ServerPaginationParams:
        state = self._state
        return ServerPaginationParams(
            page=state.page,
            limit=state.page_size,
            sort_by=state.sort_field,
            sort_order=state.sort_order,
            search=state.search or None,
            filters=dict(state.filters),
        )

    def subscribe(self, callback: Callable[[PaginationState], Any]) -> Subscription:
        """Call callback with the new state after every change."""
        return self._events.subscribe(PaginationEvent.CHANGED, callback)

    # Internals

    def _validate_page_size(self, page_size: int) -> None:
        if page_size <= 0:
            raise PaginationError(f"Page size must be positive, got {page_size}")
        if self.max_page_size is not None and page_size > self.max_page_size:
            raise PaginationError(
                f"Page size {page_size} exceeds maximum of {self.max_page_size}",
                details={"max_page_size": self.max_page_size},
            )

    @staticmethod
    def _clamp(page: int, state: PaginationState) -> int:
        return min(max(int(page), 1), max(state.total_pages, 1))

    def _update(self, **changes: Any) -> None:
        new_state = replace(self._state, **changes)
        if new_state == self._state:
            return
        self._state = new_state
        logger.debug(f"Pagination changed: page={new_state.page}/{new_state.total_pages}")
        self._events.emit(PaginationEvent.CHANGED, new_state)


def paginate_data(
    items: Sequence[T],
    page: int = 1,
    page_size: int = 20,
    total: Optional[int] = None,
) -> PaginatedResult[T]:
    """Stateless client-side pagination of an already loaded list."""
    if page_size <= 0:
        raise PaginationError(f"Page size must be positive, got {page_size}")

    state = PaginationState(
        page=max(1, page),
        page_size=page_size,
        total=len(items) if total is None else max(0, total),
    )
    start = state.offset
    return PaginatedResult(items=list(items[start:start + page_size]), state=state)


def pagination_params(
    page: int,
    page_size: int,
    sort_by: Optional[str] = None,
    sort_order: Optional[SortOrder] = None,
    search: Optional[str] = None,
    filters: Optional[Dict[str, Any]] = None,
) -> ServerPaginationParams:
    """Build a server descriptor without a controller."""
    return ServerPaginationParams(
        page=page,
        limit=page_size,
        sort_by=sort_by,
        sort_order=SortOrder(sort_order) if sort_order else None,
        search=search or None,
        filters=dict(filters or {}),
    )

