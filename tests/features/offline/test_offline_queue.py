"""Tests for connectivity monitoring and the offline queue."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from pharma_sync.core.exceptions import ApiError, QueueClosedError
from pharma_sync.features.offline.adapters.http_probe import HttpReachabilityProbe
from pharma_sync.features.offline.entities.connectivity import (
    ConnectivityConfig,
    ConnectivityEvent,
    ConnectivityState,
)
from pharma_sync.features.offline.entities.queued_operation import QueueEvent
from pharma_sync.features.offline.services.connectivity_monitor import ConnectivityMonitor
from pharma_sync.features.offline.services.offline_queue import OfflineQueue


def make_probe(handler) -> HttpReachabilityProbe:
    config = ConnectivityConfig(health_check_url="https://api.example.com/api/health")
    return HttpReachabilityProbe(config, transport=httpx.MockTransport(handler))


@pytest.fixture
def monitor():
    return ConnectivityMonitor(
        config=ConnectivityConfig(failures_before_offline=2),
        probe=AsyncMock(return_value=True),
    )


@pytest.fixture
def queue(monitor, sleep, clock):
    return OfflineQueue(monitor, sleep=sleep, clock=clock)


class TestHttpReachabilityProbe:
    """HEAD health checks."""

    @pytest.mark.asyncio
    async def test_success_status_is_reachable(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200)

        assert await make_probe(handler)() is True
        assert seen[0].method == "HEAD"
        assert seen[0].headers["Cache-Control"] == "no-cache"
        assert str(seen[0].url) == "https://api.example.com/api/health"

    @pytest.mark.asyncio
    async def test_redirect_status_is_reachable(self):
        assert await make_probe(lambda request: httpx.Response(304)).check() is True

    @pytest.mark.asyncio
    async def test_server_error_is_unreachable(self):
        assert await make_probe(lambda request: httpx.Response(503)).check() is False

    @pytest.mark.asyncio
    async def test_transport_error_is_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        assert await make_probe(handler).check() is False

    @pytest.mark.asyncio
    async def test_timeout_is_unreachable(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        assert await make_probe(handler).check() is False


class TestConnectivityMonitor:
    """Online/offline transitions."""

    @pytest.mark.asyncio
    async def test_offline_after_consecutive_failures(self, monitor):
        monitor.probe = AsyncMock(return_value=False)
        on_offline = MagicMock()
        monitor.subscribe(ConnectivityEvent.OFFLINE, on_offline)

        await monitor.probe_once()
        assert monitor.is_online
        assert monitor.consecutive_failures == 1

        await monitor.probe_once()
        assert monitor.state == ConnectivityState.OFFLINE
        assert monitor.was_offline
        on_offline.assert_called_once_with()

        await monitor.probe_once()
        on_offline.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_single_success_restores_online(self, monitor):
        monitor.notify_offline()
        on_online = MagicMock()
        monitor.subscribe(ConnectivityEvent.ONLINE, on_online)

        assert await monitor.probe_once() is True

        assert monitor.is_online
        assert monitor.was_offline
        on_online.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self, monitor):
        monitor.probe = AsyncMock(side_effect=[False, True, False])

        for _ in range(3):
            await monitor.probe_once()

        assert monitor.is_online
        assert monitor.consecutive_failures == 1

    @pytest.mark.asyncio
    async def test_probe_exception_counts_as_failure(self, monitor):
        monitor.probe = AsyncMock(side_effect=RuntimeError("dns"))

        assert await monitor.probe_once() is False
        assert monitor.consecutive_failures == 1

    def test_platform_signals_switch_immediately(self, monitor):
        events = []
        monitor.subscribe(ConnectivityEvent.OFFLINE, lambda: events.append("offline"))
        monitor.subscribe(ConnectivityEvent.ONLINE, lambda: events.append("online"))

        monitor.notify_offline()
        monitor.notify_offline()
        monitor.notify_online()

        assert events == ["offline", "online"]

    def test_initial_offline_state(self):
        monitor = ConnectivityMonitor(probe=AsyncMock(), initial_state=ConnectivityState.OFFLINE)

        assert not monitor.is_online
        assert monitor.was_offline

    @pytest.mark.asyncio
    async def test_periodic_probing(self):
        probe = AsyncMock(return_value=True)
        monitor = ConnectivityMonitor(config=ConnectivityConfig(probe_interval=0.01), probe=probe)

        monitor.start()
        assert monitor.running
        await asyncio.sleep(0.05)
        await monitor.stop()

        assert probe.await_count >= 1
        assert not monitor.running

    def test_config_validation(self, make_settings):
        with pytest.raises(ValueError):
            ConnectivityConfig(failures_before_offline=0)

        config = ConnectivityConfig.from_settings(make_settings(offline_probe_interval_seconds=10))
        assert config.probe_interval == 10


class TestOfflineQueue:
    """Deferred execution and replay."""

    @pytest.mark.asyncio
    async def test_online_runs_immediately(self, queue):
        operation = AsyncMock(return_value={"id": "sale-1"})

        result = await queue.execute_when_online(operation)

        assert result == {"id": "sale-1"}
        assert queue.queued_count == 0
        assert queue.stats()["replayed"] == 1

    @pytest.mark.asyncio
    async def test_offline_operations_replayed_in_order(self, queue, monitor):
        monitor.notify_offline()
        order = []

        def op(name):
            async def run():
                order.append(name)
                return name
            return run

        futures = [queue.execute_when_online(op(name)) for name in ("a", "b", "c")]
        assert queue.queued_count == 3
        assert order == []

        monitor.notify_online()
        await queue.drain()

        assert order == ["a", "b", "c"]
        assert [f.result() for f in futures] == ["a", "b", "c"]
        assert queue.queued_count == 0

    @pytest.mark.asyncio
    async def test_reconnect_drains_without_explicit_call(self, queue, monitor):
        monitor.notify_offline()
        future = queue.execute_when_online(AsyncMock(return_value=1))

        monitor.notify_online()

        assert await asyncio.wait_for(future, timeout=1) == 1

    @pytest.mark.asyncio
    async def test_failure_isolated_to_its_operation(self, queue, monitor):
        monitor.notify_offline()
        on_error = MagicMock()
        on_success = MagicMock()
        error = ApiError.from_status(422, "invalid sale")

        failing = queue.execute_when_online(AsyncMock(side_effect=error), on_error=on_error)
        working = queue.execute_when_online(AsyncMock(return_value="ok"), on_success=on_success)

        monitor.notify_online()
        await queue.drain()

        with pytest.raises(ApiError):
            await failing
        assert await working == "ok"
        on_error.assert_called_once_with(error)
        on_success.assert_called_once_with("ok")
        assert queue.stats()["failed"] == 1

    @pytest.mark.asyncio
    async def test_retryable_failure_retried_with_backoff(self, queue, sleep):
        operation = AsyncMock(side_effect=[ApiError.network(), "ok"])

        assert await queue.execute_when_online(operation) == "ok"
        assert operation.await_count == 2
        assert sleep.delays == [2.0]

    @pytest.mark.asyncio
    async def test_non_retryable_operation_runs_once(self, queue):
        operation = AsyncMock(side_effect=ApiError.network())

        with pytest.raises(ApiError):
            await queue.execute_when_online(operation, retryable=False)
        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_operations_submitted_during_drain_keep_order(self, queue, monitor):
        monitor.notify_offline()
        gate = asyncio.Event()
        order = []

        async def first():
            await gate.wait()
            order.append("first")

        async def second():
            order.append("second")

        queue.execute_when_online(first)
        monitor.notify_online()
        drain = asyncio.ensure_future(queue.drain())
        await asyncio.sleep(0)
        assert queue.draining

        queue.execute_when_online(second)
        gate.set()
        await drain

        assert order == ["first", "second"]

    @pytest.mark.asyncio
    async def test_connection_lost_mid_drain_keeps_rest_queued(self, queue, monitor):
        monitor.notify_offline()

        async def loses_connection():
            monitor.notify_offline()
            return "sent"

        first = queue.execute_when_online(loses_connection)
        second = queue.execute_when_online(AsyncMock(return_value="later"))

        monitor.notify_online()
        await queue.drain()

        assert first.result() == "sent"
        assert not second.done()
        assert queue.queued_count == 1

        monitor.notify_online()
        await queue.drain()
        assert await second == "later"

    @pytest.mark.asyncio
    async def test_replay_invalidates_related_cache(self, monitor, store, sleep):
        queue = OfflineQueue(monitor, store=store, sleep=sleep)
        store.set("sales-o1", [])
        store.set("products-o2", [])

        await queue.execute_when_online(AsyncMock(return_value=None), entity="sale", outlet_id="o1")

        assert store.keys() == ["products-o2"]

    @pytest.mark.asyncio
    async def test_events(self, queue, monitor):
        enqueued = MagicMock()
        drained = MagicMock()
        queue.subscribe(QueueEvent.ENQUEUED, enqueued)
        queue.subscribe(QueueEvent.DRAINED, drained)
        monitor.notify_offline()

        queue.execute_when_online(AsyncMock(return_value=1))
        monitor.notify_online()
        await queue.drain()

        enqueued.assert_called_once()
        drained.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_stats_and_pending_operations(self, queue, monitor, clock):
        monitor.notify_offline()
        queue.execute_when_online(AsyncMock(), entity="product", outlet_id="o1")

        stats = queue.stats()
        assert stats["queue_length"] == 1
        assert stats["is_online"] is False
        assert stats["oldest_enqueued_at"] == clock.now
        assert queue.pending_operations()[0]["entity"] == "product"

    @pytest.mark.asyncio
    async def test_clear_rejects_queued_operations(self, queue, monitor):
        monitor.notify_offline()
        future = queue.execute_when_online(AsyncMock())

        assert queue.clear() == 1

        with pytest.raises(QueueClosedError):
            await future

    @pytest.mark.asyncio
    async def test_destroy_blocks_new_operations(self, queue, monitor):
        monitor.notify_offline()
        future = queue.execute_when_online(AsyncMock())

        await queue.destroy()

        with pytest.raises(QueueClosedError):
            await future
        with pytest.raises(QueueClosedError):
            queue.execute_when_online(AsyncMock())

    @pytest.mark.asyncio
    async def test_destroy_cancels_running_operations(self, queue):
        gate = asyncio.Event()
        started = []

        async def operation():
            started.append(1)
            await gate.wait()
            return "never"

        future = queue.execute_when_online(operation)
        await asyncio.sleep(0)
        assert started == [1]

        await queue.destroy()

        assert future.cancelled()
        assert queue._running == set()
        assert queue.stats()["replayed"] == 0
