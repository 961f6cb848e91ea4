"""Tests for cache key helpers, serializers and related invalidation."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

import pytest
from pydantic import BaseModel

from pharma_sync.core.exceptions import CacheSerializationError
from pharma_sync.features.cache.entities.cache_entry import CacheStats
from pharma_sync.features.cache.entities.config import CacheStoreConfig
from pharma_sync.features.cache.entities.keys import (
    CacheDurations,
    build_cache_key,
    build_param_key,
    duration_for,
    parse_cache_key,
    related_invalidation_patterns,
)
from pharma_sync.features.cache.serializers.compression import compress, decompress
from pharma_sync.features.cache.serializers.json_serializer import JsonCacheSerializer
from pharma_sync.features.cache.serializers.pydantic_serializer import PydanticCacheSerializer
from pharma_sync.features.cache.services.cache_invalidation import invalidate_related


class Sale(BaseModel):
    id: int
    total: Decimal


class TestCacheKeys:
    """Key building and parsing."""

    def test_build_cache_key_skips_none(self):
        assert build_cache_key("products", "outlet1", None, 3) == "products-outlet1-3"

    def test_build_cache_key_without_parts(self):
        assert build_cache_key("dashboard") == "dashboard"
        assert build_cache_key("dashboard", None) == "dashboard"

    def test_build_param_key_sorts_params(self):
        key = build_param_key("sales", {"limit": 10, "outlet": "o1"})

        assert key == "sales:limit:10|outlet:o1"
        assert build_param_key("sales", {"outlet": "o1", "limit": 10}) == key

    def test_build_param_key_without_params(self):
        assert build_param_key("sales") == "sales"

    def test_parse_cache_key(self):
        parsed = parse_cache_key("products-outlet1-42")

        assert parsed.entity == "products"
        assert parsed.scope == "outlet1"
        assert parsed.qualifier == "42"

    def test_parse_cache_key_entity_only(self):
        parsed = parse_cache_key("dashboard")

        assert parsed.entity == "dashboard"
        assert parsed.scope is None
        assert parsed.qualifier is None

    def test_duration_for_known_and_unknown_types(self):
        assert duration_for("sales") == 30.0
        assert duration_for("outlets") == 600.0
        assert duration_for("unknown") == 300.0

    def test_duration_presets(self):
        assert CacheDurations.SHORT < CacheDurations.MEDIUM < CacheDurations.LONG < CacheDurations.VERY_LONG

    def test_related_patterns_with_outlet(self):
        patterns = related_invalidation_patterns("product", "o1")

        assert patterns == ["products-", "inventory-", "dashboard-", "-o1"]

    def test_related_patterns_for_unknown_entity(self):
        assert related_invalidation_patterns("unknown", "o1") == []


class TestInvalidateRelated:
    """Mutation-driven invalidation."""

    def test_sale_mutation_invalidates_reports(self, store):
        store.set("sales-o1", [])
        store.set("reports-o1-daily", {})
        store.set("products-o2", [])

        removed = invalidate_related(store, "sale")

        assert removed == 2
        assert store.keys() == ["products-o2"]

    def test_outlet_scope_invalidates_outlet_keys(self, store):
        store.set("products-o2", [])
        store.set("shifts-o1", [])

        invalidate_related(store, "user", "o1")

        assert store.keys() == ["products-o2"]


class TestSerializers:
    """JSON and pydantic serializers."""

    def test_json_extended_types(self):
        serializer = JsonCacheSerializer()
        value = {
            "when": datetime(2024, 1, 2, 3, 4, 5),
            "day": date(2024, 1, 2),
            "price": Decimal("12.50"),
            "id": UUID("12345678-1234-5678-1234-567812345678"),
            "tags": {"a"},
        }

        assert serializer.loads(serializer.dumps(value)) == value

    def test_json_serializes_models_as_dicts(self):
        serializer = JsonCacheSerializer()

        data = serializer.loads(serializer.dumps(Sale(id=1, total=Decimal("9.99"))))

        assert data == {"id": 1, "total": "9.99"}

    def test_json_loads_invalid_data(self):
        with pytest.raises(CacheSerializationError):
            JsonCacheSerializer().loads(b"{not json")

    def test_pydantic_serializer_validates(self):
        serializer = PydanticCacheSerializer(list[Sale])
        sales = [Sale(id=1, total=Decimal("1.10"))]

        assert serializer.loads(serializer.dumps(sales)) == sales
        with pytest.raises(CacheSerializationError):
            serializer.loads(b'[{"id": "x"}]')

    def test_decompress_rejects_garbage(self):
        assert decompress(compress(b"payload")) == b"payload"
        with pytest.raises(CacheSerializationError):
            decompress(b"garbage")


class TestCacheConfig:
    """Configuration and stats entities."""

    def test_invalid_budgets_rejected(self):
        with pytest.raises(ValueError):
            CacheStoreConfig(max_entries=0)
        with pytest.raises(ValueError):
            CacheStoreConfig(compression_level=10)

    def test_from_settings(self, make_settings):
        config = CacheStoreConfig.from_settings(make_settings(cache_max_size_mb=1, cache_max_entries=5))

        assert config.max_size_bytes == 1024 * 1024
        assert config.max_entries == 5

    def test_stats_rates_without_requests(self):
        stats = CacheStats(0, 0, 0, 0, 0, 0, 0)

        assert stats.hit_rate == 0.0
        assert stats.compression_ratio == 0.0
        assert stats.to_dict()["miss_rate"] == 0.0
