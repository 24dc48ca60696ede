"""WineCellar configuration module.

This module provides TOML-based configuration with environment variable overrides.

Configuration is loaded from the following locations (in order of priority):
1. Environment variables (highest priority)
2. ./config.toml (project root - for development)
3. ~/.config/winecellar/config.toml (user config)
4. /etc/winecellar/config.toml (system config)
"""

from winecellar.config.schema import (
    DatabaseConfig,
    ImageConfig,
    ServerConfig,
    WinecellarConfig,
)
from winecellar.config.settings import Settings, get_settings, reset_settings

__all__ = [
    "DatabaseConfig",
    "ImageConfig",
    "ServerConfig",
    "Settings",
    "WinecellarConfig",
    "get_settings",
    "reset_settings",
]
