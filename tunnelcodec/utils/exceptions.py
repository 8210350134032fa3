"""Exception hierarchy for tunnelcodec.

Provides the error taxonomy of the codec layer and the configuration
errors raised while loading settings.
"""

from __future__ import annotations

from typing import Any


class TunnelCodecError(Exception):
    """Base exception for all tunnelcodec errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize tunnelcodec error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class CipherError(TunnelCodecError):
    """Stream cipher codec errors."""


class UnsupportedCipherError(CipherError):
    """Cipher method name is not in the catalog."""


class CipherSetupError(CipherError):
    """Native cipher setup, key, IV or reset failure during initialization."""


class UseAfterDisposeError(CipherError):
    """Codec used after its cipher contexts were released."""


class InvalidStateError(CipherError):
    """Operation not legal in the current context state."""


class ValidationError(TunnelCodecError):
    """Data validation errors."""


class ConfigurationError(ValidationError):
    """Configuration validation errors."""
