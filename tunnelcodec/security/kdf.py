"""Key derivation for the tunnel codec.

Two steps are involved:

- :func:`bytes_to_key` turns the configured password into the master key
  (OpenSSL ``EVP_BytesToKey`` with MD5, one iteration, no salt). This is
  the construction every peer of the legacy tunnel protocol uses, so it
  cannot be swapped for a modern KDF without breaking interoperability.
- :func:`derive_session_key` computes the per-connection key handed to the
  cipher from the master key and the connection IV.
"""

from __future__ import annotations

import hashlib

from tunnelcodec.security.ciphers.catalog import CipherFamily, CipherSpec

MD5_DIGEST_SIZE = 16


def _md5(data: bytes) -> bytes:
    return hashlib.md5(data).digest()  # nosec B324 - Required by the tunnel protocol


def _bytes_to_key(password: bytes, key_len: int) -> bytes:
    blocks: list[bytes] = []
    previous = b""
    while len(blocks) * MD5_DIGEST_SIZE < key_len:
        previous = _md5(previous + password)
        blocks.append(previous)
    return b"".join(blocks)[:key_len]


def bytes_to_key(password: bytes | str, key_len: int) -> bytes:
    """Derive the master key from a password.

    Args:
        password: Configured password (str is UTF-8 encoded)
        key_len: Master key length in bytes

    Returns:
        Master key of exactly ``key_len`` bytes

    """
    if key_len <= 0:
        msg = f"Key length must be positive, got {key_len}"
        raise ValueError(msg)
    if isinstance(password, str):
        password = password.encode("utf-8")
    return _bytes_to_key(bytes(password), key_len)


def derive_session_key(master_key: bytes, iv: bytes, spec: CipherSpec) -> bytes:
    """Compute the effective cipher key for one direction of a connection.

    RC4 (``rc4-md5``): the keystream depends on the key alone, so the IV is
    mixed into the key: ``MD5(master_key || iv)`` truncated to ``key_len``.
    Every other family uses the master key unchanged and takes the IV
    through the cipher mode instead.

    Args:
        master_key: Master key, ``spec.key_len`` bytes
        iv: Connection IV, ``spec.iv_len`` bytes
        spec: Cipher spec of the codec

    Returns:
        Effective key of ``spec.key_len`` bytes

    Raises:
        ValueError: If the master key or IV has the wrong length

    """
    if len(master_key) != spec.key_len:
        msg = f"{spec.name} master key must be {spec.key_len} bytes, got {len(master_key)}"
        raise ValueError(msg)
    if len(iv) != spec.iv_len:
        msg = f"{spec.name} IV must be {spec.iv_len} bytes, got {len(iv)}"
        raise ValueError(msg)

    if spec.family is CipherFamily.RC4:
        return _md5(bytes(master_key) + bytes(iv))[: spec.key_len]
    return bytes(master_key)
