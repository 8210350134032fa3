"""Shared utilities and infrastructure.

This module contains the exception hierarchy and logging setup used
throughout the package.
"""

from __future__ import annotations

from tunnelcodec.utils.exceptions import (
    CipherError,
    CipherSetupError,
    ConfigurationError,
    InvalidStateError,
    TunnelCodecError,
    UnsupportedCipherError,
    UseAfterDisposeError,
    ValidationError,
)
from tunnelcodec.utils.logging_config import get_logger, setup_logging

__all__ = [
    # Exceptions
    "CipherError",
    "CipherSetupError",
    "ConfigurationError",
    "InvalidStateError",
    "TunnelCodecError",
    "UnsupportedCipherError",
    "UseAfterDisposeError",
    "ValidationError",
    # Logging
    "get_logger",
    "setup_logging",
]
