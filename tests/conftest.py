"""Pytest configuration and fixtures for pharma-sync tests."""

import os
from typing import List

import pytest

from pharma_sync.config.settings import SyncSettings
from pharma_sync.features.cache.adapters.memory_store import CacheStore
from pharma_sync.features.cache.entities.config import CacheStoreConfig
from pharma_sync.features.requests.retry.retry_policy import RetryPolicy
from pharma_sync.features.requests.services.request_orchestrator import RequestOrchestrator


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Sleep replacement that records delays and returns immediately."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def make_settings(monkeypatch):
    """Build SyncSettings from keyword overrides, isolated from the environment."""
    for name in list(os.environ):
        if name.startswith("PHARMA_SYNC_"):
            monkeypatch.delenv(name)

    def _make(**overrides) -> SyncSettings:
        return SyncSettings(_env_file=None, **overrides)

    return _make


@pytest.fixture
def cache_config():
    """Small budgets so eviction is easy to trigger."""
    return CacheStoreConfig(
        max_size_bytes=1024 * 1024,
        max_entries=100,
        default_ttl=300.0,
        enable_compression=False,
    )


@pytest.fixture
def store(cache_config, clock):
    return CacheStore(config=cache_config, clock=clock)


@pytest.fixture
def orchestrator(store, sleep, clock):
    return RequestOrchestrator(
        store,
        retry_policy=RetryPolicy(retry_attempts=3, retry_delay=1.0),
        sleep=sleep,
        clock=clock,
    )
