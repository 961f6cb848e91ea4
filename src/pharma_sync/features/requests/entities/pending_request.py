"""In-flight request bookkeeping."""

import asyncio
from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class PendingRequest:
    """A single in-flight fetch shared by every caller asking for ``key``.

    At most one exists per key. It is discarded as soon as the fetch
    settles, in the same step that writes the result to the cache, so a
    caller arriving afterwards is served from the cache instead.
    """
    key: str
    started_at: float
    task: Optional["asyncio.Task[Any]"] = None
    subscribers: int = 0
    attempts: int = 0

    @property
    def done(self) -> bool:
        return self.task is not None and self.task.done()
