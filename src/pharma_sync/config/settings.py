"""Settings for the pharma-sync data layer.

All values can be overridden through ``PHARMA_SYNC_*`` environment variables
or a ``.env`` file. Durations are seconds, sizes are bytes unless the field
name says otherwise.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SyncSettings(BaseSettings):
    """Global settings for cache, request, pagination and offline handling."""

    model_config = SettingsConfigDict(
        env_prefix="PHARMA_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Cache store
    cache_max_size_mb: float = Field(default=100, gt=0, description="Max total cache size in MB")
    cache_max_entries: int = Field(default=2000, ge=1, description="Max number of cache entries")
    cache_default_ttl_seconds: float = Field(default=300, ge=0, description="Default entry TTL")
    cache_cleanup_interval_seconds: float = Field(default=120, gt=0, description="Expiry sweep interval")
    cache_enable_compression: bool = Field(default=True, description="Compress large values")
    cache_compression_threshold_bytes: int = Field(default=50 * 1024, ge=0, description="Compression threshold")
    cache_compression_level: int = Field(default=6, ge=1, le=9, description="Gzip compression level")

    # Request orchestration
    request_retry_attempts: int = Field(default=3, ge=0, description="Retries after the first call")
    request_retry_delay_seconds: float = Field(default=1.0, ge=0, description="Base delay for linear backoff")
    request_default_ttl_seconds: float = Field(default=120, ge=0, description="TTL for fetched results")

    # Pagination
    pagination_default_page_size: int = Field(default=20, ge=1, description="Default page size")
    pagination_max_page_size: int = Field(default=1000, ge=1, description="Largest accepted page size")

    # Offline resilience
    offline_health_check_url: str = Field(
        default="http://localhost:3001/api/health",
        description="Endpoint probed with HEAD requests",
    )
    offline_probe_interval_seconds: float = Field(default=30, gt=0, description="Reachability probe interval")
    offline_probe_timeout_seconds: float = Field(default=5, gt=0, description="Probe request timeout")
    offline_failures_before_offline: int = Field(default=2, ge=1, description="Failed probes before going offline")

    @field_validator("offline_health_check_url")
    @classmethod
    def validate_health_check_url(cls, v: str) -> str:
        """Only absolute HTTP(S) URLs can be probed."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid health check URL: {v}")
        return v

    @property
    def cache_max_size_bytes(self) -> int:
        """Max cache size converted to bytes."""
        return int(self.cache_max_size_mb * 1024 * 1024)


@lru_cache()
def get_settings() -> SyncSettings:
    """Get the process-wide settings instance."""
    return SyncSettings()
