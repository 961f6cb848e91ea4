"""Cache store configuration."""

from dataclasses import dataclass
from typing import Optional

from ....config.settings import SyncSettings


@dataclass
class CacheStoreConfig:
    """Budgets and compression settings for a CacheStore."""

    max_size_bytes: int = 50 * 1024 * 1024
    max_entries: int = 1000
    default_ttl: float = 300.0
    cleanup_interval: float = 60.0
    enable_compression: bool = True
    compression_threshold: int = 10 * 1024
    compression_level: int = 6

    def __post_init__(self):
        """Validate budgets."""
        if self.max_size_bytes <= 0:
            raise ValueError("max_size_bytes must be positive")
        if self.max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        if self.default_ttl < 0:
            raise ValueError("default_ttl must be non-negative")
        if self.cleanup_interval <= 0:
            raise ValueError("cleanup_interval must be positive")
        if self.compression_threshold < 0:
            raise ValueError("compression_threshold must be non-negative")
        if not 1 <= self.compression_level <= 9:
            raise ValueError("compression_level must be between 1 and 9")

    @classmethod
    def from_settings(cls, settings: Optional[SyncSettings] = None) -> "CacheStoreConfig":
        """Build the store config from global settings."""
        settings = settings or SyncSettings()
        return cls(
            max_size_bytes=settings.cache_max_size_bytes,
            max_entries=settings.cache_max_entries,
            default_ttl=settings.cache_default_ttl_seconds,
            cleanup_interval=settings.cache_cleanup_interval_seconds,
            enable_compression=settings.cache_enable_compression,
            compression_threshold=settings.cache_compression_threshold_bytes,
            compression_level=settings.cache_compression_level,
        )
