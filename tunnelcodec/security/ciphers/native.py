"""Native cipher handles backed by ``cryptography``.

A :class:`CipherHandle` is a single configured cipher instance driven through
the setup/set_key/set_iv/reset/update/free sequence of a native cipher
library. Block ciphers run in CFB or CTR mode so every handle behaves as a
stream transform: output length always equals input length and feedback or
keystream state carries over between ``update`` calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Callable

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.decrepit.ciphers.algorithms import ARC4, Blowfish
from cryptography.hazmat.decrepit.ciphers.modes import CFB
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

if TYPE_CHECKING:  # pragma: no cover
    from cryptography.hazmat.primitives.ciphers import (
        CipherAlgorithm,
        CipherContext,
    )
    from cryptography.hazmat.primitives.ciphers.modes import Mode


class Operation(IntEnum):
    """Cipher operation, numbered like the native library."""

    NONE = -1
    DECRYPT = 0
    ENCRYPT = 1


@dataclass(frozen=True)
class NativeCipherInfo:
    """Static description of one native cipher."""

    name: str
    algorithm: Callable[[bytes], CipherAlgorithm]
    mode: Callable[[bytes], Mode] | None
    key_bits: int
    # 0 for stream ciphers that take no IV
    iv_len: int


_NATIVE_CIPHERS: dict[str, NativeCipherInfo] = {
    info.name: info
    for info in (
        NativeCipherInfo("AES-128-CFB128", algorithms.AES, CFB, 128, 16),
        NativeCipherInfo("AES-192-CFB128", algorithms.AES, CFB, 192, 16),
        NativeCipherInfo("AES-256-CFB128", algorithms.AES, CFB, 256, 16),
        NativeCipherInfo("AES-128-CTR", algorithms.AES, modes.CTR, 128, 16),
        NativeCipherInfo("AES-192-CTR", algorithms.AES, modes.CTR, 192, 16),
        NativeCipherInfo("AES-256-CTR", algorithms.AES, modes.CTR, 256, 16),
        NativeCipherInfo("BLOWFISH-CFB64", Blowfish, CFB, 128, 8),
        NativeCipherInfo("CAMELLIA-128-CFB128", algorithms.Camellia, CFB, 128, 16),
        NativeCipherInfo("CAMELLIA-192-CFB128", algorithms.Camellia, CFB, 192, 16),
        NativeCipherInfo("CAMELLIA-256-CFB128", algorithms.Camellia, CFB, 256, 16),
        NativeCipherInfo("ARC4-128", ARC4, None, 128, 0),
    )
}


def native_cipher_info(name: str) -> NativeCipherInfo:
    """Return the native cipher description for ``name``.

    Raises:
        ValueError: If the native library has no cipher of that name

    """
    try:
        return _NATIVE_CIPHERS[name]
    except KeyError:
        msg = f"Unknown native cipher: {name}"
        raise ValueError(msg) from None


class CipherHandle:
    """One configured native cipher instance.

    Not thread-safe: a handle has a single writer. Callers serialize access.
    """

    def __init__(self) -> None:
        """Create an empty handle; :meth:`setup` selects the cipher."""
        self._info: NativeCipherInfo | None = None
        self._key: bytes | None = None
        self._iv = b""
        self.operation = Operation.NONE
        self._cipher: Cipher | None = None
        self._contexts: dict[Operation, CipherContext] = {}
        self._freed = False

    @property
    def info(self) -> NativeCipherInfo | None:
        """Native cipher selected by :meth:`setup`, if any."""
        return self._info

    @property
    def freed(self) -> bool:
        """True once :meth:`free` has run."""
        return self._freed

    def setup(self, native_name: str) -> None:
        """Select the native cipher for this handle."""
        self._check_live()
        self._info = native_cipher_info(native_name)

    def set_key(self, key: bytes, key_bits: int, operation: Operation) -> None:
        """Install the key and the operation it is scheduled for.

        Args:
            key: Raw key bytes
            key_bits: Key length in bits, must match the native cipher
            operation: Encrypt or decrypt

        Raises:
            ValueError: If the key length does not match the cipher

        """
        info = self._require_setup()
        if key_bits != info.key_bits or len(key) * 8 != key_bits:
            msg = (
                f"{info.name} needs a {info.key_bits}-bit key, "
                f"got {len(key) * 8} bits (declared {key_bits})"
            )
            raise ValueError(msg)
        self._key = bytes(key)
        self.operation = Operation(operation)

    def set_iv(self, iv: bytes) -> None:
        """Install the IV. Ciphers without an IV ignore it."""
        info = self._require_setup()
        if info.iv_len == 0:
            return
        if len(iv) != info.iv_len:
            msg = f"{info.name} IV must be {info.iv_len} bytes, got {len(iv)}"
            raise ValueError(msg)
        self._iv = bytes(iv)

    def reset(self) -> None:
        """Start a fresh cipher stream from the installed key and IV."""
        info = self._require_setup()
        if self._key is None:
            msg = f"{info.name} key not set"
            raise ValueError(msg)
        if info.mode is not None and not self._iv:
            msg = f"{info.name} IV not set"
            raise ValueError(msg)

        mode = info.mode(self._iv) if info.mode is not None else None
        self._cipher = Cipher(info.algorithm(self._key), mode, backend=default_backend())
        self._contexts = {}
        # Build the context now so unsupported algorithms fail during setup
        self._context()

    def set_operation(self, operation: Operation) -> None:
        """Select which operation subsequent updates perform."""
        self._check_live()
        self.operation = Operation(operation)

    def update(self, data: bytes) -> bytes:
        """Transform ``data`` and return output of the same length."""
        self._check_live()
        if self._cipher is None:
            msg = "cipher handle used before reset"
            raise ValueError(msg)
        if not data:
            return b""
        return self._context().update(data)

    def free(self) -> None:
        """Release the cipher state. Safe to call more than once."""
        if self._freed:
            return
        self._freed = True
        self._contexts.clear()
        self._cipher = None
        self._key = None
        self._iv = b""

    def _context(self) -> CipherContext:
        info = self._require_setup()
        # Stream ciphers XOR a keystream; there is no separate decrypt context
        operation = self.operation if info.mode is not None else Operation.ENCRYPT
        context = self._contexts.get(operation)
        if context is None:
            if self._cipher is None:
                msg = "cipher handle used before reset"
                raise ValueError(msg)
            if operation == Operation.ENCRYPT:
                context = self._cipher.encryptor()
            elif operation == Operation.DECRYPT:
                context = self._cipher.decryptor()
            else:
                msg = f"{info.name} operation not set"
                raise ValueError(msg)
            self._contexts[operation] = context
        return context

    def _require_setup(self) -> NativeCipherInfo:
        self._check_live()
        if self._info is None:
            msg = "cipher handle used before setup"
            raise ValueError(msg)
        return self._info

    def _check_live(self) -> None:
        if self._freed:
            msg = "cipher handle used after free"
            raise ValueError(msg)
