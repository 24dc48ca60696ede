"""Global settings instance for WineCellar.

The settings object gives a flat interface over the structured
``WinecellarConfig`` loaded from config.toml and the environment.
"""


from winecellar.config.loader import load_config
from winecellar.config.schema import ImageConfig, WinecellarConfig
from winecellar.errors import ConfigurationError


class Settings:
    """Unified settings object wrapping the loaded configuration."""

    def __init__(self, config: WinecellarConfig | None = None):
        """Initialize settings.

        Args:
            config: Optional WinecellarConfig instance. If not provided, loads from file.
        """
        self._config = config or load_config()

    @property
    def config(self) -> WinecellarConfig:
        """Get the full configuration object."""
        return self._config

    # Application
    @property
    def app_name(self) -> str:
        return self._config.app_name

    @property
    def debug(self) -> bool:
        return self._config.server.debug

    # Server
    @property
    def host(self) -> str:
        return self._config.server.host

    @property
    def port(self) -> int:
        return self._config.server.port

    @property
    def enforce_https(self) -> bool:
        return self._config.server.enforce_https

    # Database
    @property
    def database_url(self) -> str:
        """Get the database URL.

        Raises:
            ConfigurationError: If no database URL was configured.
        """
        url = self._config.database.url
        if not url:
            raise ConfigurationError(
                "No database configured. Set WINECELLAR_DATABASE_URL (or DATABASE_URL), "
                "or [database] url in config.toml."
            )
        return url

    @property
    def database_echo(self) -> bool:
        return self._config.database.echo

    # Images
    @property
    def images(self) -> ImageConfig:
        return self._config.images

    @property
    def max_upload_size_bytes(self) -> int:
        return self._config.images.max_upload_bytes


# Global settings instance - lazily initialized
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    The settings are loaded once and cached for subsequent calls.

    Returns:
        The global Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance.

    This is primarily useful for testing to reload configuration.
    """
    global _settings
    _settings = None
