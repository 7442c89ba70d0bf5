"""Configuration module for Pulse.

This module provides configuration loading and profile management.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol


@dataclass
class StorageConfig:
    """Persistence backend configuration."""

    backend: str = "sqlite"  # sqlite | mongodb
    sqlite_path: str = "~/.pulse/pulse.db"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_database: str = "pulse"
    server_selection_timeout_ms: int = 5000

    def resolved_sqlite_path(self) -> Path | str:
        """SQLite path with ``~`` expanded; ``:memory:`` is kept as is."""
        if self.sqlite_path == ":memory:":
            return self.sqlite_path
        return Path(self.sqlite_path).expanduser()


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"


@dataclass
class AnalyticsConfig:
    """Analytics engine settings."""

    default_user: str | None = None
    trend_days: int = 14
    recent_insights_limit: int = 20
    achieved_goals_limit: int = 10


@dataclass
class PulseConfig:
    """Main Pulse configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)


class ConfigLoader(Protocol):
    """Protocol for configuration loading."""

    def load(self, path: Path) -> PulseConfig:
        """Load configuration from file path."""
        ...

    def load_profile(self, profile: str) -> PulseConfig:
        """Load configuration by profile name (dev, prod, test)."""
        ...

    def get_config_dir(self) -> Path:
        """Get the configuration directory path."""
        ...


# Public API
__all__ = [
    "AnalyticsConfig",
    "ConfigLoader",
    "LoggingConfig",
    "PulseConfig",
    "StorageConfig",
]
