"""Tests for retry classification and the smart prefetcher."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from pharma_sync.core.exceptions import ApiError, NETWORK_ERROR, TIMEOUT
from pharma_sync.features.cache.entities.keys import CacheTags
from pharma_sync.features.requests.retry.retry_policy import (
    DEFAULT_RETRY_POLICIES,
    RetryPolicy,
    classify_error,
    is_retryable_error,
    retry_call,
)
from pharma_sync.features.requests.services.prefetcher import RelatedPrefetchRule, SmartPrefetcher


def status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.example.com/products")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestErrorClassification:
    """Mapping exceptions to retry decisions."""

    @pytest.mark.parametrize(
        "error,expected",
        [
            (ApiError.network(), NETWORK_ERROR),
            (ApiError.from_status(404), "404"),
            (httpx.ConnectError("refused"), NETWORK_ERROR),
            (httpx.ReadTimeout("slow"), TIMEOUT),
            (asyncio.TimeoutError(), TIMEOUT),
            (ConnectionResetError(), NETWORK_ERROR),
            (ValueError("bad"), None),
        ],
    )
    def test_classify_error(self, error, expected):
        assert classify_error(error) == expected

    def test_classify_http_status_error(self):
        assert classify_error(status_error(502)) == "502"

    @pytest.mark.parametrize("status", [500, 502, 503, 504, 599])
    def test_server_errors_retryable(self, status):
        assert is_retryable_error(ApiError.from_status(status))

    @pytest.mark.parametrize("status", [400, 401, 404, 409, 422, 501])
    def test_client_errors_and_501_not_retryable(self, status):
        assert not is_retryable_error(ApiError.from_status(status))

    def test_network_and_timeout_retryable(self):
        assert is_retryable_error(ApiError.network())
        assert is_retryable_error(ApiError.timeout())
        assert is_retryable_error(status_error(503))

    def test_uncoded_errors_not_retryable(self):
        assert not is_retryable_error(KeyError("x"))

    def test_explicit_override_wins(self):
        assert not is_retryable_error(ApiError("no", code=NETWORK_ERROR, retryable=False))
        assert is_retryable_error(ApiError("yes", code="400", retryable=True))


class TestRetryPolicy:
    """Linear backoff policy."""

    def test_linear_delays(self):
        policy = RetryPolicy(retry_attempts=3, retry_delay=1.5)

        assert [policy.delay_for(n) for n in (1, 2, 3)] == [1.5, 3.0, 4.5]
        assert policy.delay_for(0) == 0.0

    def test_should_retry_respects_budget(self):
        policy = RetryPolicy(retry_attempts=2)

        assert policy.should_retry(ApiError.network(), 1)
        assert not policy.should_retry(ApiError.network(), 2)

    def test_negative_values_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy(retry_attempts=-1)
        with pytest.raises(ValueError):
            RetryPolicy(retry_delay=-0.1)

    def test_overrides_and_dict_roundtrip(self):
        base = RetryPolicy()

        assert base.with_overrides() is base
        assert base.with_overrides(retry_attempts=0).to_dict() == {"retry_attempts": 0, "retry_delay": 1.0}
        assert RetryPolicy.from_dict({"retry_delay": 2.0}).retry_attempts == 3

    def test_from_settings(self, make_settings):
        policy = RetryPolicy.from_settings(make_settings(request_retry_attempts=5, request_retry_delay_seconds=0.25))

        assert policy.retry_attempts == 5
        assert policy.retry_delay == 0.25

    def test_named_policies(self):
        assert DEFAULT_RETRY_POLICIES["no_retry"].retry_attempts == 0
        assert DEFAULT_RETRY_POLICIES["background"].retry_delay > DEFAULT_RETRY_POLICIES["default"].retry_delay

    @pytest.mark.asyncio
    async def test_retry_call(self, sleep):
        fn = AsyncMock(side_effect=[ApiError.timeout(), "done"])

        assert await retry_call(fn, RetryPolicy(retry_attempts=1, retry_delay=2.0), sleep=sleep) == "done"
        assert sleep.delays == [2.0]

    @pytest.mark.asyncio
    async def test_retry_call_gives_up(self, sleep):
        fn = AsyncMock(side_effect=ApiError.network())

        with pytest.raises(ApiError):
            await retry_call(fn, RetryPolicy(retry_attempts=2, retry_delay=1.0), sleep=sleep)
        assert fn.await_count == 3


class TestSmartPrefetcher:
    """Background warming of likely reads."""

    @pytest.fixture
    def prefetcher(self, orchestrator, sleep):
        return SmartPrefetcher(orchestrator, ttl=600.0, pause=0.1, sleep=sleep)

    def test_should_prefetch_after_threshold(self, prefetcher):
        for _ in range(2):
            prefetcher.record_action("view-products")
        assert not prefetcher.should_prefetch("view-products")

        prefetcher.record_action("view-products")
        assert prefetcher.should_prefetch("view-products")
        assert prefetcher.patterns() == {"view-products": 3}

        prefetcher.clear_patterns()
        assert not prefetcher.should_prefetch("view-products")

    @pytest.mark.asyncio
    async def test_enqueue_warms_cache_with_prefetched_tag(self, prefetcher, store):
        fetcher = AsyncMock(return_value=[1, 2])

        assert prefetcher.enqueue("products-o1", fetcher) is True
        await prefetcher.drain()

        assert store.get("products-o1") == [1, 2]
        assert store.peek("products-o1").has_tag(CacheTags.PREFETCHED)
        assert store.peek("products-o1").ttl == 600.0

    @pytest.mark.asyncio
    async def test_enqueue_skips_cached_and_queued_keys(self, prefetcher, store):
        store.set("cached", 1)

        assert prefetcher.enqueue("cached", AsyncMock()) is False
        assert prefetcher.enqueue("k", AsyncMock(return_value=1)) is True
        assert prefetcher.enqueue("k", AsyncMock()) is False
        assert prefetcher.queued_keys() == ["k"]

        await prefetcher.drain()
        assert prefetcher.queued_keys() == []

    @pytest.mark.asyncio
    async def test_failed_prefetch_is_not_retried_and_does_not_stop_queue(self, prefetcher, store, sleep):
        failing = AsyncMock(side_effect=ApiError.network())
        working = AsyncMock(return_value="ok")
        prefetcher.enqueue("a", failing)
        prefetcher.enqueue("b", working)

        await prefetcher.drain()

        assert failing.await_count == 1
        assert store.get("b") == "ok"
        assert sleep.delays == [0.1]

    @pytest.mark.asyncio
    async def test_prefetch_related_uses_registered_rules(self, prefetcher, store):
        def related(entity, outlet_id):
            return [
                (f"inventory-{outlet_id}", AsyncMock(return_value={"stock": 3})),
                (f"suppliers-{outlet_id}", AsyncMock(return_value=[])),
            ]

        prefetcher.register_rule(RelatedPrefetchRule("product", related, "stock and suppliers"))

        assert prefetcher.prefetch_related("product", "o1") == 2
        assert prefetcher.prefetch_related("sale", "o1") == 0
        await prefetcher.drain()

        assert store.get("inventory-o1") == {"stock": 3}
        assert store.get("suppliers-o1") == []

    @pytest.mark.asyncio
    async def test_stop_drops_queue(self, prefetcher):
        gate = asyncio.Event()

        async def slow():
            await gate.wait()
            return 1

        prefetcher.enqueue("a", slow)
        prefetcher.enqueue("b", slow)
        await asyncio.sleep(0)

        await prefetcher.stop()

        assert prefetcher.queued_keys() == []
        gate.set()
        await asyncio.sleep(0)
