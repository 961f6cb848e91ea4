"""Online/offline state machine."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from ..adapters.http_probe import HttpReachabilityProbe
from ..entities.connectivity import ConnectivityConfig, ConnectivityEvent, ConnectivityState
from ....core.observers import ObserverRegistry, Subscription

logger = logging.getLogger(__name__)

Probe = Callable[[], Awaitable[bool]]


class ConnectivityMonitor:
    """Tracks reachability of the API.

    Platform signals (``notify_online``/``notify_offline``) switch state
    immediately. Probes are more conservative going down than going up:
    ``failures_before_offline`` consecutive failures are needed to go
    offline, a single success brings the monitor back online.
    """

    def __init__(
        self,
        config: Optional[ConnectivityConfig] = None,
        probe: Optional[Probe] = None,
        initial_state: ConnectivityState = ConnectivityState.ONLINE,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config or ConnectivityConfig()
        self.probe = probe or HttpReachabilityProbe(self.config)
        self._state = ConnectivityState(initial_state)
        self._was_offline = self._state == ConnectivityState.OFFLINE
        self._consecutive_failures = 0
        self._sleep = sleep
        self._events: ObserverRegistry[ConnectivityEvent] = ObserverRegistry("connectivity")
        self._probe_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> ConnectivityState:
        return self._state

    @property
    def is_online(self) -> bool:
        return self._state == ConnectivityState.ONLINE

    @property
    def was_offline(self) -> bool:
        """True once the monitor has been offline at least once."""
        return self._was_offline

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    def notify_online(self) -> None:
        self._consecutive_failures = 0
        self._transition(ConnectivityState.ONLINE)

    def notify_offline(self) -> None:
        self._transition(ConnectivityState.OFFLINE)

    async def probe_once(self) -> bool:
        """Run one reachability check and apply its outcome."""
        try:
            reachable = bool(await self.probe())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Reachability probe raised: {e}")
            reachable = False

        if reachable:
            self._consecutive_failures = 0
            self._transition(ConnectivityState.ONLINE)
        else:
            self._consecutive_failures += 1
            if self._consecutive_failures >= self.config.failures_before_offline:
                self._transition(ConnectivityState.OFFLINE)
        return reachable

    def subscribe(self, event: ConnectivityEvent, callback: Callable[..., Any]) -> Subscription:
        return self._events.subscribe(event, callback)

    @property
    def running(self) -> bool:
        return self._probe_task is not None and not self._probe_task.done()

    def start(self) -> None:
        """Start periodic probing on the running loop."""
        if self.running:
            return
        self._probe_task = asyncio.create_task(self._probe_loop())
        logger.info(
            f"Connectivity monitor started: probing {self.config.health_check_url} "
            f"every {self.config.probe_interval}s"
        )

    async def stop(self) -> None:
        if self._probe_task:
            self._probe_task.cancel()
            try:
                await self._probe_task
            except asyncio.CancelledError:
                pass
            self._probe_task = None

    def _transition(self, new_state: ConnectivityState) -> None:
        if new_state == self._state:
            return

        self._state = new_state
        if new_state == ConnectivityState.OFFLINE:
            self._was_offline = True
            logger.info("Connection lost, switching to offline mode")
            self._events.emit(ConnectivityEvent.OFFLINE)
        else:
            logger.info("Connection restored")
            self._events.emit(ConnectivityEvent.ONLINE)

    async def _probe_loop(self) -> None:
        while True:
            try:
                await self._sleep(self.config.probe_interval)
                await self.probe_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in connectivity probe loop: {e}")
