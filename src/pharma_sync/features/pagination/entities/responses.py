"""Pagination state snapshots and results."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

from .requests import SortOrder

T = TypeVar("T")


@dataclass(frozen=True)
class PaginationState:
    """Immutable snapshot of a pagination controller."""

    page: int = 1
    page_size: int = 20
    total: int = 0
    sort_field: Optional[str] = None
    sort_order: SortOrder = SortOrder.ASC
    search: str = ""
    filters: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        """Calculate total number of pages."""
        return math.ceil(self.total / self.page_size)

    @property
    def has_next(self) -> bool:
        """Check if there's a next page."""
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        """Check if there's a previous page."""
        return self.page > 1

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def start_index(self) -> int:
        """1-based index of the first item on the page."""
        return self.offset + 1

    @property
    def end_index(self) -> int:
        """1-based index of the last item on the page."""
        return min(self.page * self.page_size, self.total)

    @property
    def page_info(self) -> Dict[str, Any]:
        """Get comprehensive page information."""
        return {
            "page": self.page,
            "page_size": self.page_size,
            "total": self.total,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
            "has_prev": self.has_prev,
            "start_index": self.start_index,
            "end_index": self.end_index,
            "sort_field": self.sort_field,
            "sort_order": self.sort_order.value,
            "search": self.search,
            "filters": dict(self.filters),
        }


@dataclass(frozen=True)
class PaginatedResult(Generic[T]):
    """One page of items with the state that produced it."""

    items: List[T]
    state: PaginationState

    @property
    def count(self) -> int:
        """Get number of items in current page."""
        return len(self.items)

    @property
    def has_items(self) -> bool:
        """Check if response has any items."""
        return len(self.items) > 0


@dataclass(frozen=True)
class VirtualScrollWindow:
    """Rows to render for a virtualized list."""

    start_index: int
    end_index: int
    total_height: float
    offset_y: float
    visible_items: int
