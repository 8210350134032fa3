"""Encrypted stream wrappers for asyncio relays.

Provides transparent encryption/decryption wrappers for asyncio streams so a
relay can read plaintext from and write plaintext to an encrypted
connection. Both wrappers drive one direction of a shared
:class:`~tunnelcodec.security.codec.StreamCodec`; the IVs are exchanged by
the relay before the wrappers are used.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    import asyncio

    from tunnelcodec.security.codec import StreamCodec


class EncryptedStreamReader:
    """Encrypted stream reader wrapper.

    Wraps asyncio.StreamReader to transparently decrypt data as it's read.
    """

    def __init__(self, reader: asyncio.StreamReader, codec: StreamCodec):
        """Initialize encrypted stream reader.

        Args:
            reader: Underlying stream reader
            codec: Codec whose decrypt direction is initialized

        """
        self.reader = reader
        self.codec = codec

    async def read(self, n: int = -1) -> bytes:
        """Read and decrypt data.

        Args:
            n: Number of bytes to read (-1 for all available)

        Returns:
            Decrypted data

        """
        # Stream transform: ciphertext size == plaintext size
        encrypted = await self.reader.read(n)
        if not encrypted:
            return b""
        return self.codec.decrypt_update(encrypted)

    async def readexactly(self, n: int) -> bytes:
        """Read exactly n bytes and decrypt.

        Args:
            n: Exact number of bytes to read

        Returns:
            Decrypted data (exactly n bytes)

        Raises:
            asyncio.IncompleteReadError: If insufficient data available

        """
        encrypted = await self.reader.readexactly(n)
        return self.codec.decrypt_update(encrypted)

    def at_eof(self) -> bool:
        """Check if stream is at EOF."""
        return self.reader.at_eof()

    def __getattr__(self, name: str) -> Any:
        """Delegate other attributes to underlying reader."""
        return getattr(self.reader, name)


class EncryptedStreamWriter:
    """Encrypted stream writer wrapper.

    Wraps asyncio.StreamWriter to transparently encrypt data before writing.
    """

    def __init__(self, writer: asyncio.StreamWriter, codec: StreamCodec):
        """Initialize encrypted stream writer.

        Args:
            writer: Underlying stream writer
            codec: Codec whose encrypt direction is initialized

        """
        self.writer = writer
        self.codec = codec

    def write(self, data: bytes) -> None:
        """Encrypt and write data."""
        if not data:
            return
        self.writer.write(self.codec.encrypt_update(data))

    async def drain(self) -> None:
        """Drain writer buffer."""
        await self.writer.drain()

    def close(self) -> None:
        """Close writer."""
        self.writer.close()

    async def wait_closed(self) -> None:
        """Wait for writer to close."""
        await self.writer.wait_closed()

    def get_extra_info(self, name: str, default: Any = None) -> Any:
        """Get extra info from writer."""
        return self.writer.get_extra_info(name, default)

    def __getattr__(self, name: str) -> Any:
        """Delegate other attributes to underlying writer."""
        return getattr(self.writer, name)
