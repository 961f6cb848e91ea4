"""Pagination services."""

from .pagination_controller import (
    PaginationController,
    PaginationEvent,
    paginate_data,
    pagination_params,
)
from .paginated_data import PaginatedDataSource, unpack_page
from .utils import (
    Debouncer,
    generate_page_numbers,
    format_pagination_info,
    calculate_optimal_page_size,
    calculate_virtual_scroll,
)

__all__ = [
    "PaginationController",
    "PaginationEvent",
    "paginate_data",
    "pagination_params",
    "PaginatedDataSource",
    "unpack_page",
    "Debouncer",
    "generate_page_numbers",
    "format_pagination_info",
    "calculate_optimal_page_size",
    "calculate_virtual_scroll",
]
