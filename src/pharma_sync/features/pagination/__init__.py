"""Pagination feature for pharma-sync.

- entities/: State snapshots, server query descriptors, results
- services/: Controller state machine, data source, UI helpers
"""

from .entities import (
    SortOrder,
    ServerPaginationParams,
    PaginationState,
    PaginatedResult,
    VirtualScrollWindow,
)
from .services import (
    PaginationController,
    PaginationEvent,
    PaginatedDataSource,
    Debouncer,
    paginate_data,
    pagination_params,
    generate_page_numbers,
    format_pagination_info,
    calculate_optimal_page_size,
    calculate_virtual_scroll,
)

__all__ = [
    # Entities
    "SortOrder",
    "ServerPaginationParams",
    "PaginationState",
    "PaginatedResult",
    "VirtualScrollWindow",

    # Services
    "PaginationController",
    "PaginationEvent",
    "PaginatedDataSource",
    "Debouncer",
    "paginate_data",
    "pagination_params",
    "generate_page_numbers",
    "format_pagination_info",
    "calculate_optimal_page_size",
    "calculate_virtual_scroll",
]
