"""Cancellation tokens for abandoning in-flight requests."""

import asyncio
from enum import Enum
from typing import Any, Callable, List, Optional

from ....core.exceptions import RequestCancelledError
from ....core.observers import ObserverRegistry, Subscription


class TokenEvent(str, Enum):
    CANCELLED = "cancelled"


class CancellationToken:
    """One-shot cancellation signal passed alongside a fetch.

    Cancelling is idempotent. Callbacks registered after the token fired run
    immediately.
    """

    def __init__(self):
        self._cancelled = False
        self._event = asyncio.Event()
        self._callbacks: ObserverRegistry[TokenEvent] = ObserverRegistry("cancellation")
        self._links: List[Subscription] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._event.set()
        self._callbacks.emit(TokenEvent.CANCELLED)
        self._callbacks.clear()
        for link in self._links:
            link.dispose()
        self._links.clear()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()

    def on_cancel(self, callback: Callable[[], Any]) -> Subscription:
        if self._cancelled:
            callback()
            subscription = Subscription(lambda: None)
            subscription.dispose()
            return subscription
        return self._callbacks.subscribe(TokenEvent.CANCELLED, callback)

    def raise_if_cancelled(self, key: Optional[str] = None) -> None:
        if self._cancelled:
            raise RequestCancelledError(key or "")

    @classmethod
    def linked(cls, *tokens: "CancellationToken") -> "CancellationToken":
        """Token that fires as soon as any of tokens fires."""
        child = cls()
        for token in tokens:
            if token.cancelled:
                child.cancel()
                break
            child._links.append(token.on_cancel(child.cancel))
        return child

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"
