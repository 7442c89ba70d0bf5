"""Configuration profile management.

Profiles are selected by the PULSE_PROFILE environment variable and map to
YAML files in the configuration directory.
"""

import os
from enum import Enum
from pathlib import Path

PROFILE_ENV_VAR = "PULSE_PROFILE"

# Default: the YAML files shipped beside this module
DEFAULT_CONFIG_DIR = Path(__file__).parent


class Profile(Enum):
    """Available configuration profiles."""

    DEV = "dev"
    PROD = "prod"
    TEST = "test"


def detect_profile() -> Profile:
    """Detect the configuration profile.

    Reads the PULSE_PROFILE environment variable and falls back to the
    development profile when it is unset or unknown.

    Returns:
        Profile enum value
    """
    env_profile = os.environ.get(PROFILE_ENV_VAR, "").lower()
    profile_map = {
        "prod": Profile.PROD,
        "dev": Profile.DEV,
        "test": Profile.TEST,
    }
    return profile_map.get(env_profile, Profile.DEV)


def get_profile_path(profile: Profile | None = None, config_dir: Path | None = None) -> Path:
    """Get path to profile configuration file.

    Args:
        profile: Profile to use, or None to auto-detect
        config_dir: Configuration directory, or None for default

    Returns:
        Path to profile YAML file
    """
    if profile is None:
        profile = detect_profile()
    if config_dir is None:
        config_dir = DEFAULT_CONFIG_DIR
    return config_dir / f"{profile.value}.yaml"


def is_development() -> bool:
    """Check if running in development mode."""
    return detect_profile() == Profile.DEV


def is_production() -> bool:
    """Check if running in production mode."""
    return detect_profile() == Profile.PROD


__all__ = [
    "DEFAULT_CONFIG_DIR",
    "PROFILE_ENV_VAR",
    "Profile",
    "detect_profile",
    "get_profile_path",
    "is_development",
    "is_production",
]
