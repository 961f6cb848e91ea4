"""Helpers for rendering paginated and virtualized lists."""

import asyncio
import inspect
import logging
import math
from typing import Any, Callable, List, Optional

from ..entities.responses import PaginationState, VirtualScrollWindow

logger = logging.getLogger(__name__)


def generate_page_numbers(current_page: int, total_pages: int, max_visible: int = 7) -> List[int]:
    """Page numbers to show in a pager, centred on current_page where possible."""
    if total_pages <= max_visible:
        return list(range(1, total_pages + 1))

    half = max_visible // 2
    start = max(1, current_page - half)
    end = min(total_pages, start + max_visible - 1)

    if end - start + 1 < max_visible:
        start = max(1, end - max_visible + 1)

    return list(range(start, end + 1))


def format_pagination_info(state: PaginationState) -> str:
    if state.total == 0:
        return "No items found"
    if state.total == 1:
        return "1 item"
    return f"{state.start_index}-{state.end_index} of {state.total} items"


def calculate_optimal_page_size(
    container_height: float,
    item_height: float,
    min_page_size: int = 10,
    max_page_size: int = 100,
) -> int:
    """Two screens worth of rows, bounded by min and max page size."""
    if item_height <= 0:
        raise ValueError("item_height must be positive")

    visible_items = math.floor(container_height / item_height)
    return min(max(visible_items * 2, min_page_size), max_page_size)


def calculate_virtual_scroll(
    scroll_top: float,
    total_items: int,
    item_height: float,
    container_height: float,
    overscan: int = 5,
) -> VirtualScrollWindow:
    """Index window to render for a virtualized list at scroll_top.

    ``overscan`` extra rows are rendered on each side of the viewport.
    With no items the window is empty (``end_index`` is -1).
    """
    if item_height <= 0:
        raise ValueError("item_height must be positive")

    visible_items = math.ceil(container_height / item_height)
    start_index = max(0, math.floor(scroll_top / item_height) - overscan)
    end_index = min(total_items - 1, start_index + visible_items + overscan * 2)

    return VirtualScrollWindow(
        start_index=start_index,
        end_index=end_index,
        total_height=total_items * item_height,
        offset_y=start_index * item_height,
        visible_items=max(0, end_index - start_index + 1),
    )


class Debouncer:
    """Run callback once input has been quiet for ``delay`` seconds.

    Typical use is a search box: every keystroke calls the debouncer and
    only the last value reaches ``PaginationController.set_search``.
    """

    def __init__(self, callback: Callable[[Any], Any], delay: float = 0.3):
        self.callback = callback
        self.delay = delay
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending_value: Any = None
        self._has_pending = False

    @property
    def pending(self) -> bool:
        return self._has_pending

    def __call__(self, value: Any) -> None:
        """Schedule callback(value), replacing any earlier scheduled value."""
        self.cancel()
        self._pending_value = value
        self._has_pending = True
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self.flush)

    def flush(self) -> None:
        """Invoke the callback now with the pending value, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if not self._has_pending:
            return

        value = self._pending_value
        self._pending_value = None
        self._has_pending = False

        result = self.callback(value)
        if inspect.isawaitable(result):
            asyncio.ensure_future(result)

    def cancel(self) -> None:
        """Drop the pending value without invoking the callback."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending_value = None
        self._has_pending = False
