"""Stream cipher codec layer.

Provides:
- Cipher method catalog and native cipher handles
- Master and per-connection key derivation
- The two-direction stream codec and its lifecycle
- asyncio stream wrappers driven by a codec
"""

from __future__ import annotations

from tunnelcodec.security.ciphers import (
    CipherFamily,
    CipherSpec,
    lookup,
    supported_ciphers,
)
from tunnelcodec.security.codec import (
    ContextLifecycle,
    ContextState,
    Direction,
    SessionContext,
    StreamCodec,
    decrypt_all,
    encrypt_all,
    random_iv,
)
from tunnelcodec.security.encrypted_stream import (
    EncryptedStreamReader,
    EncryptedStreamWriter,
)
from tunnelcodec.security.kdf import bytes_to_key, derive_session_key

__all__ = [
    "CipherFamily",
    "CipherSpec",
    "ContextLifecycle",
    "ContextState",
    "Direction",
    "EncryptedStreamReader",
    "EncryptedStreamWriter",
    "SessionContext",
    "StreamCodec",
    "bytes_to_key",
    "decrypt_all",
    "derive_session_key",
    "encrypt_all",
    "lookup",
    "random_iv",
    "supported_ciphers",
]
