"""tunnelcodec - stream cipher codec layer of an encrypted tunneling client."""

from __future__ import annotations

__version__ = "0.1.0"

from tunnelcodec.security.ciphers.catalog import lookup, supported_ciphers
from tunnelcodec.security.codec import Direction, StreamCodec
from tunnelcodec.utils.exceptions import (
    CipherError,
    CipherSetupError,
    InvalidStateError,
    TunnelCodecError,
    UnsupportedCipherError,
    UseAfterDisposeError,
)

__all__ = [
    "CipherError",
    "CipherSetupError",
    "Direction",
    "InvalidStateError",
    "StreamCodec",
    "TunnelCodecError",
    "UnsupportedCipherError",
    "UseAfterDisposeError",
    "__version__",
    "lookup",
    "supported_ciphers",
]
