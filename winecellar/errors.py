"""Error kinds raised by the cellar services.

Client-facing errors derive from ``CellarError`` and carry the HTTP status
they map to. Anything else reaching the web layer is treated as internal.
"""

from fastapi import status


class CellarError(Exception):
    """Base class for errors caused by user input or missing records."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(CellarError):
    """Raised when a user-supplied value is malformed or out of range."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(CellarError):
    """Raised when a referenced wine or record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class PayloadTooLargeError(CellarError):
    """Raised when an upload exceeds the configured size limit."""

    status_code = status.HTTP_413_CONTENT_TOO_LARGE


class ConfigurationError(Exception):
    """Raised at startup when required configuration is missing."""
