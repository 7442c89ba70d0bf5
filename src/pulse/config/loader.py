"""YAML configuration loader with inheritance support.

Supports:
- Loading YAML config files
- Config inheritance via 'extends' key
- Deep merging of nested config
- Environment variable overrides for storage and user
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from . import AnalyticsConfig, LoggingConfig, PulseConfig, StorageConfig
from .profiles import DEFAULT_CONFIG_DIR, detect_profile

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "PULSE_STORAGE_BACKEND": ("storage", "backend"),
    "PULSE_SQLITE_PATH": ("storage", "sqlite_path"),
    "PULSE_MONGO_URI": ("storage", "mongo_uri"),
    "PULSE_USER_ID": ("analytics", "default_user"),
}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Values from override take precedence. Nested dicts are merged recursively.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml_with_inheritance(path: Path) -> dict[str, Any]:
    """Load YAML file with inheritance support.

    If the file contains an 'extends' key, the base config is loaded first
    and merged with the current config.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        config = yaml.safe_load(f) or {}

    # Handle inheritance
    if "extends" in config:
        base_name = config.pop("extends")
        base_path = path.parent / base_name
        base_config = load_yaml_with_inheritance(base_path)
        config = deep_merge(base_config, config)

    return config


def apply_env_overrides(
    data: dict[str, Any], environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Overlay PULSE_* environment variables onto raw config data."""
    environ = os.environ if environ is None else environ
    pulse_data = dict(data.get("pulse") or {})

    for var, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value:
            pulse_data[section] = deep_merge(pulse_data.get(section) or {}, {key: value})

    return {**data, "pulse": pulse_data}


def dict_to_config(data: dict[str, Any]) -> PulseConfig:
    """Convert raw dict to typed PulseConfig dataclass."""
    pulse_data = data.get("pulse", {}) or {}

    # Helper to safely get dict values (handles None from YAML)
    def safe_get(key: str) -> dict[str, Any]:
        value = pulse_data.get(key, {})
        return value if value is not None else {}

    return PulseConfig(
        storage=StorageConfig(**safe_get("storage")),
        logging=LoggingConfig(**safe_get("logging")),
        analytics=AnalyticsConfig(**safe_get("analytics")),
    )


class YAMLConfigLoader:
    """YAML configuration loader implementation."""

    def __init__(
        self,
        config_dir: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize loader with optional config directory.

        Args:
            config_dir: Directory containing config files.
                        Defaults to the profiles shipped with the package.
            environ: Environment used for overrides, defaults to os.environ.
        """
        self._config_dir = config_dir or DEFAULT_CONFIG_DIR
        self._environ = environ

    def load(self, path: Path) -> PulseConfig:
        """Load configuration from file path.

        Args:
            path: Path to YAML config file

        Returns:
            Parsed PulseConfig
        """
        raw_config = load_yaml_with_inheritance(path)
        return dict_to_config(apply_env_overrides(raw_config, self._environ))

    def load_profile(self, profile: str) -> PulseConfig:
        """Load configuration by profile name.

        Args:
            profile: Profile name (e.g., 'dev', 'prod')

        Returns:
            Parsed PulseConfig for the profile
        """
        config_path = self._config_dir / f"{profile}.yaml"
        return self.load(config_path)

    def get_config_dir(self) -> Path:
        """Get the configuration directory path."""
        return self._config_dir


# Convenience function
def load_config(path: str | Path | None = None, profile: str | None = None) -> PulseConfig:
    """Load Pulse configuration.

    Args:
        path: Direct path to config file (takes precedence)
        profile: Profile name ('dev', 'prod', 'test') if path not given;
                 PULSE_PROFILE is consulted when neither is given

    Returns:
        Parsed PulseConfig

    Examples:
        >>> config = load_config(profile="dev")
        >>> config = load_config(path="/path/to/config.yaml")
    """
    loader = YAMLConfigLoader()

    if path is not None:
        return loader.load(Path(path))
    elif profile is not None:
        return loader.load_profile(profile)
    else:
        return loader.load_profile(detect_profile().value)


__all__ = [
    "ENV_OVERRIDES",
    "YAMLConfigLoader",
    "apply_env_overrides",
    "deep_merge",
    "dict_to_config",
    "load_config",
    "load_yaml_with_inheritance",
]
