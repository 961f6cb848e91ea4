"""Pagination request entities and enums."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class SortOrder(str, Enum):
    """Sort order enumeration."""
    ASC = "asc"
    DESC = "desc"

    def toggled(self) -> "SortOrder":
        """The opposite direction."""
        return SortOrder.DESC if self == SortOrder.ASC else SortOrder.ASC


@dataclass(frozen=True)
class ServerPaginationParams:
    """Normalized query descriptor sent to the remote API."""

    page: int = 1
    limit: int = 20
    sort_by: Optional[str] = None
    sort_order: Optional[SortOrder] = None
    search: Optional[str] = None
    filters: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate pagination parameters."""
        if self.page < 1:
            raise ValueError("Page must be >= 1")
        if self.limit < 1:
            raise ValueError("Limit must be >= 1")

    @property
    def offset(self) -> int:
        """Calculate offset from page and limit."""
        return (self.page - 1) * self.limit

    def to_dict(self, camel_case: bool = True) -> Dict[str, Any]:
        """Query parameters, leaving out members that are not set."""
        sort_by_key, sort_order_key = ("sortBy", "sortOrder") if camel_case else ("sort_by", "sort_order")

        params: Dict[str, Any] = {
            "page": self.page,
            "limit": self.limit,
            "offset": self.offset,
        }
        if self.sort_by:
            params[sort_by_key] = self.sort_by
        if self.sort_order:
            params[sort_order_key] = self.sort_order.value
        if self.search:
            params["search"] = self.search
        if self.filters:
            params["filters"] = dict(self.filters)
        return params

    def cache_key_fragment(self) -> str:
        """Stable string identifying this query, for use in cache keys."""
        parts = [f"p{self.page}", f"l{self.limit}"]
        if self.sort_by:
            parts.append(f"s{self.sort_by}.{(self.sort_order or SortOrder.ASC).value}")
        if self.search:
            parts.append(f"q{self.search}")
        if self.filters:
            parts.append("f" + json.dumps(self.filters, sort_keys=True, separators=(",", ":"), default=str))
        return "|".join(parts)
