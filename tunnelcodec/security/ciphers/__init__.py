"""Cipher catalog and native cipher handles.

Provides:
- The method catalog (AES-CFB/CTR, Blowfish-CFB, Camellia-CFB, RC4-MD5)
- Native cipher handles backed by ``cryptography``
"""

from __future__ import annotations

from tunnelcodec.security.ciphers.catalog import (
    CipherFamily,
    CipherSpec,
    is_supported,
    lookup,
    supported_ciphers,
)
from tunnelcodec.security.ciphers.native import CipherHandle, Operation

__all__ = [
    "CipherFamily",
    "CipherHandle",
    "CipherSpec",
    "Operation",
    "is_supported",
    "lookup",
    "supported_ciphers",
]
