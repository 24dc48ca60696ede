"""Pydantic models for WineCellar configuration.

These models define the structure of config.toml.
"""

from typing import Literal

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 20000
    debug: bool = False
    enforce_https: bool = False


class DatabaseConfig(BaseModel):
    """Relational database configuration.

    ``url`` has no default: the application refuses to start without it.
    """

    url: str | None = None
    echo: bool = False


class ImageConfig(BaseModel):
    """Image pipeline configuration."""

    max_upload_mb: int = 10
    max_width: int = 512
    max_height: int = 512
    thumbnail_width: int = 96
    thumbnail_height: int = 96
    # "device" rotates uploads from agents matching rotate_agent_marker,
    # "exif" honours the embedded orientation tag instead.
    orientation: Literal["device", "exif"] = "device"
    rotate_agent_marker: str = "iPhone"

    @property
    def max_upload_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_mb * 1024 * 1024


class WinecellarConfig(BaseModel):
    """Main WineCellar configuration loaded from config.toml."""

    app_name: str = "Wine Cellar"
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    images: ImageConfig = Field(default_factory=ImageConfig)
