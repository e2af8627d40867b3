"""
Configuration management for Postpad.

Uses XDG base directories:
- Config: ~/.config/postpad/config.toml
- Data: ~/postpad/ (the post store)
"""

from pathlib import Path
from typing import Any
import logging
import os

# XDG defaults
DEFAULT_CONFIG_HOME = Path.home() / ".config"
DEFAULT_DATA_HOME = Path.home() / "postpad"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_config_dir() -> Path:
    """Get the config directory (XDG_CONFIG_HOME/postpad)."""
    base = Path(os.environ.get("XDG_CONFIG_HOME", DEFAULT_CONFIG_HOME))
    return base / "postpad"


def get_postpad_home() -> Path:
    """Get the postpad data directory (~/postpad or POSTPAD_HOME)."""
    if env_home := os.environ.get("POSTPAD_HOME"):
        return Path(env_home)
    return DEFAULT_DATA_HOME


def get_config_path() -> Path:
    """Get the path to config.toml."""
    return get_config_dir() / "config.toml"


def get_db_path() -> Path:
    """Get the path to postpad.db (sqlite backend)."""
    return get_postpad_home() / "postpad.db"


def load_config() -> dict[str, Any]:
    """
    Load configuration from config.toml.

    Sections found in the file are merged over the defaults, so a
    config that only sets ``[storage] backend`` keeps the default key.
    Returns default config if file doesn't exist.
    """
    config = get_default_config()
    config_path = get_config_path()

    if not config_path.exists():
        return config

    # Lazy import tomli only when needed
    import tomli

    with open(config_path, "rb") as f:
        loaded = tomli.load(f)

    for section, values in loaded.items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section].update(values)
        else:
            config[section] = values
    return config


def get_default_config() -> dict[str, Any]:
    """Return default configuration."""
    return {
        "postpad": {
            "home": str(get_postpad_home()),
        },
        "storage": {
            "backend": "file",  # or "sqlite", "memory"
            "key": "posts",
        },
        "logging": {
            "level": "WARNING",
        },
    }


def setup_logging(config: dict[str, Any] | None = None) -> None:
    """Configure root logging from config (POSTPAD_LOG_LEVEL wins)."""
    config = config or load_config()
    level_name = (
        os.environ.get("POSTPAD_LOG_LEVEL")
        or config.get("logging", {}).get("level", "WARNING")
    )
    level = getattr(logging, str(level_name).upper(), logging.WARNING)
    logging.basicConfig(format=LOG_FORMAT, level=level)
