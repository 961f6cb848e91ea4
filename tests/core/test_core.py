"""Tests for observers, exceptions, settings and logging configuration."""

import asyncio
import logging
from enum import Enum
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError as PydanticValidationError

from pharma_sync.config.logging_config import LogFormat, LoggingConfig, get_log_level_from_verbosity
from pharma_sync.core.exceptions import (
    ApiError,
    NETWORK_ERROR,
    PaginationError,
    PharmaSyncError,
    TIMEOUT,
    create_error_response,
)
from pharma_sync.core.observers import ObserverRegistry


class Signal(str, Enum):
    PING = "ping"
    PONG = "pong"


class TestObserverRegistry:
    """Typed observer registry."""

    def test_emit_calls_subscribers_in_order(self):
        registry = ObserverRegistry()
        calls = []
        registry.subscribe(Signal.PING, lambda value: calls.append(("first", value)))
        registry.subscribe(Signal.PING, lambda value: calls.append(("second", value)))

        registry.emit(Signal.PING, 1)

        assert calls == [("first", 1), ("second", 1)]

    def test_emit_only_reaches_matching_event(self):
        registry = ObserverRegistry()
        callback = MagicMock()
        registry.subscribe(Signal.PONG, callback)

        registry.emit(Signal.PING)

        callback.assert_not_called()

    def test_dispose_removes_only_its_own_registration(self):
        registry = ObserverRegistry()
        callback = MagicMock()
        first = registry.subscribe(Signal.PING, callback)
        registry.subscribe(Signal.PING, callback)

        first.dispose()
        first.dispose()
        registry.emit(Signal.PING)

        assert callback.call_count == 1
        assert registry.count(Signal.PING) == 1
        assert not first.active

    def test_subscription_as_context_manager(self):
        registry = ObserverRegistry()
        callback = MagicMock()

        with registry.subscribe(Signal.PING, callback):
            registry.emit(Signal.PING)
        registry.emit(Signal.PING)

        assert callback.call_count == 1

    def test_failing_callback_does_not_stop_others(self):
        registry = ObserverRegistry()
        after = MagicMock()
        registry.subscribe(Signal.PING, MagicMock(side_effect=RuntimeError("boom")))
        registry.subscribe(Signal.PING, after)

        registry.emit(Signal.PING)

        after.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_async_callbacks_are_scheduled(self):
        registry = ObserverRegistry()
        received = []

        async def on_ping(value):
            received.append(value)

        registry.subscribe(Signal.PING, on_ping)
        registry.emit(Signal.PING, "hello")
        await asyncio.sleep(0)

        assert received == ["hello"]

    def test_async_callback_without_loop_is_dropped(self):
        registry = ObserverRegistry()

        async def on_ping():
            raise AssertionError("must not run")

        registry.subscribe(Signal.PING, on_ping)
        registry.emit(Signal.PING)

        assert registry.count() == 1


class TestExceptions:
    """Exception hierarchy."""

    def test_error_response_envelope(self):
        error = PharmaSyncError("broken", details={"key": "k"})

        assert create_error_response(error) == {
            "error": {
                "code": "PharmaSyncError",
                "message": "broken",
                "details": {"key": "k"},
                "type": "PharmaSyncError",
            }
        }

    def test_api_error_factories(self):
        assert ApiError.network().code == NETWORK_ERROR
        assert ApiError.timeout().code == TIMEOUT

        error = ApiError.from_status(503)
        assert error.code == "503"
        assert error.status_code == 503
        assert error.error_code == "503"

    def test_pagination_error_is_value_error(self):
        with pytest.raises(ValueError):
            raise PaginationError("bad page size")


class TestSettings:
    """Environment-driven settings."""

    def test_defaults(self, make_settings):
        settings = make_settings()

        assert settings.cache_max_entries == 2000
        assert settings.cache_max_size_bytes == 100 * 1024 * 1024
        assert settings.request_retry_attempts == 3
        assert settings.offline_failures_before_offline == 2

    def test_environment_override(self, make_settings, monkeypatch):
        monkeypatch.setenv("PHARMA_SYNC_CACHE_MAX_ENTRIES", "50")

        assert make_settings().cache_max_entries == 50

    def test_invalid_health_check_url(self, make_settings):
        with pytest.raises(PydanticValidationError):
            make_settings(offline_health_check_url="localhost/health")


class TestLoggingConfig:
    """Logging configuration built from environment variables."""

    def test_verbosity_mapping(self):
        assert get_log_level_from_verbosity("quiet") == "ERROR"
        assert get_log_level_from_verbosity("VERBOSE") == "INFO"
        assert get_log_level_from_verbosity("nonsense") == "WARNING"

    def test_log_level_overrides_verbosity(self, monkeypatch):
        monkeypatch.setenv("LOG_VERBOSITY", "QUIET")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        config = LoggingConfig.build_config()

        assert config["root"]["level"] == "DEBUG"

    def test_third_party_loggers_pinned_to_error(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        config = LoggingConfig.build_config()

        assert config["loggers"]["httpx"]["level"] == "ERROR"
        assert config["loggers"]["httpcore"]["propagate"] is False

    def test_unknown_format_falls_back_to_simple(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "xml")

        config = LoggingConfig.build_config()

        assert config["formatters"]["default"]["format"] == LoggingConfig.FORMATS[LogFormat.SIMPLE]

    def test_silence_module(self):
        LoggingConfig.silence_module("pharma_sync.tests.noisy")

        assert logging.getLogger("pharma_sync.tests.noisy").level == logging.CRITICAL
