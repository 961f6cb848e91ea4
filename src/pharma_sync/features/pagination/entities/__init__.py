"""Pagination entities."""

from .requests import SortOrder, ServerPaginationParams
from .responses import PaginationState, PaginatedResult, VirtualScrollWindow

__all__ = [
    "SortOrder",
    "ServerPaginationParams",
    "PaginationState",
    "PaginatedResult",
    "VirtualScrollWindow",
]
