"""Cipher method catalog for the tunnel codec.

Maps the user-facing method names (``aes-256-cfb``, ``rc4-md5`` ...) to the
native cipher name, key and IV lengths and cipher family. The table is built
once at import time and is read-only afterwards, so lookups need no locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from tunnelcodec.utils.exceptions import UnsupportedCipherError


class CipherFamily(Enum):
    """Cipher families with distinct key/IV handling."""

    RC4 = "rc4"
    AES = "aes"
    BLOWFISH = "blowfish"
    CAMELLIA = "camellia"


@dataclass(frozen=True)
class CipherSpec:
    """Parameters of one cipher method."""

    name: str
    native_name: str
    key_len: int
    iv_len: int
    family: CipherFamily

    def __post_init__(self):
        """Validate key and IV lengths."""
        if self.key_len <= 0 or self.iv_len <= 0:
            msg = f"{self.name}: key and IV lengths must be positive"
            raise ValueError(msg)


_CIPHERS = MappingProxyType(
    {
        spec.name: spec
        for spec in (
            CipherSpec("aes-128-cfb", "AES-128-CFB128", 16, 16, CipherFamily.AES),
            CipherSpec("aes-192-cfb", "AES-192-CFB128", 24, 16, CipherFamily.AES),
            CipherSpec("aes-256-cfb", "AES-256-CFB128", 32, 16, CipherFamily.AES),
            CipherSpec("aes-128-ctr", "AES-128-CTR", 16, 16, CipherFamily.AES),
            CipherSpec("aes-192-ctr", "AES-192-CTR", 24, 16, CipherFamily.AES),
            CipherSpec("aes-256-ctr", "AES-256-CTR", 32, 16, CipherFamily.AES),
            CipherSpec("bf-cfb", "BLOWFISH-CFB64", 16, 8, CipherFamily.BLOWFISH),
            CipherSpec(
                "camellia-128-cfb", "CAMELLIA-128-CFB128", 16, 16, CipherFamily.CAMELLIA
            ),
            CipherSpec(
                "camellia-192-cfb", "CAMELLIA-192-CFB128", 24, 16, CipherFamily.CAMELLIA
            ),
            CipherSpec(
                "camellia-256-cfb", "CAMELLIA-256-CFB128", 32, 16, CipherFamily.CAMELLIA
            ),
            CipherSpec("rc4-md5", "ARC4-128", 16, 16, CipherFamily.RC4),
        )
    }
)


def lookup(name: str) -> CipherSpec:
    """Return the cipher spec registered under ``name``.

    Raises:
        UnsupportedCipherError: If ``name`` is not a known method

    """
    try:
        return _CIPHERS[name]
    except (KeyError, TypeError):
        msg = f"Unsupported cipher method: {name!r}"
        raise UnsupportedCipherError(msg, {"method": name}) from None


def supported_ciphers() -> tuple[str, ...]:
    """Return the supported method names in registration order."""
    return tuple(_CIPHERS)


def is_supported(name: str) -> bool:
    """Return True if ``name`` is a known method."""
    return name in _CIPHERS
