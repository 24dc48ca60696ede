"""Configuration loader for WineCellar.

Loads configuration from a TOML file; environment variables can override
any configuration value.
"""

import logging
import os
from pathlib import Path
from typing import Any

from winecellar.config.schema import WinecellarConfig

logger = logging.getLogger(__name__)

# Try to import tomllib (Python 3.11+) or fall back to tomli
try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[import-not-found]

ENV_PREFIX = "WINECELLAR"

INT_KEYS = {
    "port",
    "max_upload_mb",
    "max_width",
    "max_height",
    "thumbnail_width",
    "thumbnail_height",
}
BOOL_KEYS = {"debug", "enforce_https", "echo"}


def get_config_search_paths() -> list[Path]:
    """Get the list of paths to search for configuration files.

    Returns paths in priority order (first found wins):
    1. ./config.toml (project root - for development)
    2. ~/.config/winecellar/config.toml (user config)
    3. /etc/winecellar/config.toml (system config)
    """
    return [
        Path.cwd() / "config.toml",
        Path.home() / ".config" / "winecellar" / "config.toml",
        Path("/etc/winecellar/config.toml"),
    ]


def find_config_file() -> Path | None:
    """Find the first existing config file from search paths."""
    for path in get_config_search_paths():
        if path.exists() and path.is_file():
            logger.debug("Found config file: %s", path)
            return path
    return None


def load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents as a dictionary."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _convert(key: str, value: str) -> Any:
    if key in INT_KEYS:
        return int(value)
    if key in BOOL_KEYS:
        return value.lower() in ("true", "1", "yes")
    return value


def _set(config_dict: dict[str, Any], section: str, key: str, value: Any) -> None:
    config_dict.setdefault(section, {})[key] = value


def apply_env_overrides(config_dict: dict[str, Any], prefix: str = ENV_PREFIX) -> None:
    """Apply environment variable overrides to configuration dictionary.

    Environment variables are mapped as follows:
    - WINECELLAR_SERVER_HOST -> config_dict["server"]["host"]
    - WINECELLAR_DATABASE_URL -> config_dict["database"]["url"]
    - WINECELLAR_LISTEN=host:port sets both server host and port
    - DATABASE_URL is used when no WINECELLAR database URL is given
    - WINE_LAP=host:port is used when WINECELLAR_LISTEN is not set

    Note: This modifies config_dict in place.
    """
    env_mappings = {
        # Server
        f"{prefix}_SERVER_HOST": ("server", "host"),
        f"{prefix}_SERVER_PORT": ("server", "port"),
        f"{prefix}_SERVER_DEBUG": ("server", "debug"),
        f"{prefix}_SERVER_ENFORCE_HTTPS": ("server", "enforce_https"),
        f"{prefix}_HOST": ("server", "host"),  # Shorthand
        f"{prefix}_PORT": ("server", "port"),  # Shorthand
        f"{prefix}_DEBUG": ("server", "debug"),  # Shorthand
        # Database
        f"{prefix}_DATABASE_URL": ("database", "url"),
        f"{prefix}_DATABASE_ECHO": ("database", "echo"),
        # Images
        f"{prefix}_IMAGES_MAX_UPLOAD_MB": ("images", "max_upload_mb"),
        f"{prefix}_IMAGES_MAX_WIDTH": ("images", "max_width"),
        f"{prefix}_IMAGES_MAX_HEIGHT": ("images", "max_height"),
        f"{prefix}_IMAGES_THUMBNAIL_WIDTH": ("images", "thumbnail_width"),
        f"{prefix}_IMAGES_THUMBNAIL_HEIGHT": ("images", "thumbnail_height"),
        f"{prefix}_IMAGES_ORIENTATION": ("images", "orientation"),
        f"{prefix}_IMAGES_ROTATE_AGENT_MARKER": ("images", "rotate_agent_marker"),
    }

    database_url = os.environ.get("DATABASE_URL")
    if database_url and not config_dict.get("database", {}).get("url"):
        _set(config_dict, "database", "url", database_url)

    listen = os.environ.get(f"{prefix}_LISTEN") or os.environ.get("WINE_LAP")
    if listen:
        host, _, port = listen.rpartition(":")
        if host:
            _set(config_dict, "server", "host", host)
        _set(config_dict, "server", "port", int(port))

    for env_var, (section, key) in env_mappings.items():
        value = os.environ.get(env_var)
        if value is not None:
            _set(config_dict, section, key, _convert(key, value))


def load_config(config_file: Path | None = None) -> WinecellarConfig:
    """Load configuration from TOML file with environment variable overrides.

    Args:
        config_file: Optional path to config file. If not provided,
                     searches default locations.

    Returns:
        WinecellarConfig instance with all settings loaded.
    """
    config_dict: dict[str, Any] = {}

    if config_file is None:
        config_file = find_config_file()

    if config_file and config_file.exists():
        logger.info("Loading config from: %s", config_file)
        config_dict = load_toml_file(config_file)
    else:
        logger.info("No config file found, using defaults with env overrides")

    apply_env_overrides(config_dict)

    return WinecellarConfig(**config_dict)
