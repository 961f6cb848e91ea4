"""Connectivity state and configuration."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ....config.settings import SyncSettings


class ConnectivityState(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


class ConnectivityEvent(str, Enum):
    """Transitions published by the connectivity monitor."""
    ONLINE = "online"
    OFFLINE = "offline"


@dataclass
class ConnectivityConfig:
    """Reachability probe settings."""

    health_check_url: str = "http://localhost:3001/api/health"
    probe_interval: float = 30.0
    probe_timeout: float = 5.0
    failures_before_offline: int = 2

    def __post_init__(self):
        """Validate probe settings."""
        if self.probe_interval <= 0:
            raise ValueError("probe_interval must be positive")
        if self.probe_timeout <= 0:
            raise ValueError("probe_timeout must be positive")
        if self.failures_before_offline < 1:
            raise ValueError("failures_before_offline must be >= 1")

    @classmethod
    def from_settings(cls, settings: Optional[SyncSettings] = None) -> "ConnectivityConfig":
        settings = settings or SyncSettings()
        return cls(
            health_check_url=settings.offline_health_check_url,
            probe_interval=settings.offline_probe_interval_seconds,
            probe_timeout=settings.offline_probe_timeout_seconds,
            failures_before_offline=settings.offline_failures_before_offline,
        )
