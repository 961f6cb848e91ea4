"""Typed observer registry.

Subscribers register a callback for an event name from an Enum and receive
a Subscription handle; disposing the handle removes exactly that callback,
so two subscribers using the same function never remove each other.
"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, Set, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


class Subscription:
    """Handle returned by ObserverRegistry.subscribe."""

    def __init__(self, dispose: Callable[[], None]):
        self._dispose = dispose
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def dispose(self) -> None:
        """Remove the callback. Calling it more than once is a no-op."""
        if self._active:
            self._active = False
            self._dispose()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()


class _Observer:
    __slots__ = ("callback",)

    def __init__(self, callback: Callable[..., Any]):
        self.callback = callback


class ObserverRegistry(Generic[E]):
    """Observer registry keyed by event enum members."""

    def __init__(self, name: str = "observers"):
        self.name = name
        self._observers: Dict[E, List[_Observer]] = {}
        self._tasks: Set[asyncio.Task] = set()

    def subscribe(self, event: E, callback: Callable[..., Any]) -> Subscription:
        """Register callback for event and return its disposer."""
        observer = _Observer(callback)
        self._observers.setdefault(event, []).append(observer)

        def _remove() -> None:
            observers = self._observers.get(event, [])
            # Identity check, not equality: the same function may be registered twice
            for index, candidate in enumerate(observers):
                if candidate is observer:
                    del observers[index]
                    break

        return Subscription(_remove)

    def emit(self, event: E, *args: Any) -> None:
        """Call every callback registered for event, in subscription order."""
        for observer in list(self._observers.get(event, [])):
            try:
                result = observer.callback(*args)
            except Exception as e:
                logger.error(f"Error in {self.name} {event.value} callback: {e}")
                continue

            if inspect.isawaitable(result):
                self._schedule(event, result)

    def count(self, event: Optional[E] = None) -> int:
        """Number of callbacks for event, or for all events."""
        if event is not None:
            return len(self._observers.get(event, []))
        return sum(len(observers) for observers in self._observers.values())

    def clear(self) -> None:
        self._observers.clear()

    def _schedule(self, event: E, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running loop for async {self.name} {event.value} callback; dropped")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        task = loop.create_task(awaitable)
        self._tasks.add(task)

        def _done(finished: asyncio.Task) -> None:
            self._tasks.discard(finished)
            if not finished.cancelled() and finished.exception() is not None:
                logger.error(f"Error in {self.name} {event.value} callback: {finished.exception()}")

        task.add_done_callback(_done)
