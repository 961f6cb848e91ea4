"""Batched request entities."""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class BatchRequest:
    """One call to be sent as part of a batch."""
    endpoint: str
    params: Dict[str, Any] = field(default_factory=dict)
    method: str = "GET"
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        self.method = self.method.upper()
        if self.method not in ("GET", "POST", "PUT", "DELETE"):
            raise ValueError(f"Unsupported batch method: {self.method}")


@dataclass
class BatchResponse:
    """Per-request result of a batch call, matched to its request by ``id``."""
    id: str
    status: int
    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300 and self.error is None
