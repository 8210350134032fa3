"""Tests for encrypted stream wrappers.

Covers:
- EncryptedStreamReader read/readexactly operations
- EncryptedStreamWriter write/drain operations
- Round trips through a real asyncio stream
- EOF detection
- Attribute delegation
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from tunnelcodec.security.codec import Direction, StreamCodec
from tunnelcodec.security.encrypted_stream import (
    EncryptedStreamReader,
    EncryptedStreamWriter,
)

pytestmark = [pytest.mark.unit, pytest.mark.security]

METHOD = "aes-256-ctr"
PASSWORD = "stream-secret"
IV = bytes(range(16))


@pytest.fixture
def peer_encoder():
    """Codec encrypting what the remote end sends."""
    codec = StreamCodec(METHOD, PASSWORD)
    codec.initialize(Direction.ENCRYPT, IV)
    yield codec
    codec.dispose()


@pytest.fixture
def codec():
    """Local codec with both directions initialized."""
    codec = StreamCodec(METHOD, PASSWORD)
    codec.initialize(Direction.ENCRYPT, IV)
    codec.initialize(Direction.DECRYPT, IV)
    yield codec
    codec.dispose()


class TestEncryptedStreamReader:
    """Tests for EncryptedStreamReader."""

    @pytest.fixture
    def mock_reader(self):
        """Create mock StreamReader."""
        return AsyncMock()

    @pytest.fixture
    def encrypted_reader(self, mock_reader, codec):
        """Create EncryptedStreamReader instance."""
        return EncryptedStreamReader(mock_reader, codec)

    @pytest.mark.asyncio
    async def test_init(self, encrypted_reader, mock_reader, codec):
        """Test EncryptedStreamReader initialization."""
        assert encrypted_reader.reader == mock_reader
        assert encrypted_reader.codec == codec

    @pytest.mark.asyncio
    async def test_read_all_data(self, encrypted_reader, mock_reader, peer_encoder):
        """Test reading all available data."""
        plaintext = b"Hello, World!"
        mock_reader.read.return_value = peer_encoder.encrypt_update(plaintext)

        result = await encrypted_reader.read(-1)

        assert result == plaintext
        mock_reader.read.assert_called_once_with(-1)

    @pytest.mark.asyncio
    async def test_read_in_pieces(self, encrypted_reader, mock_reader, peer_encoder):
        """Successive reads continue the same stream."""
        ciphertext = peer_encoder.encrypt_update(b"first part, second part")
        mock_reader.read.side_effect = [ciphertext[:11], ciphertext[11:]]

        first = await encrypted_reader.read(11)
        second = await encrypted_reader.read(100)

        assert first + second == b"first part, second part"

    @pytest.mark.asyncio
    async def test_read_empty_data(self, encrypted_reader, mock_reader, codec):
        """EOF returns empty bytes without touching the codec."""
        mock_reader.read.return_value = b""

        result = await encrypted_reader.read(100)

        assert result == b""

    @pytest.mark.asyncio
    async def test_readexactly(self, encrypted_reader, mock_reader, peer_encoder):
        """Test reading exact number of bytes."""
        plaintext = b"exactly"
        mock_reader.readexactly.return_value = peer_encoder.encrypt_update(plaintext)

        result = await encrypted_reader.readexactly(len(plaintext))

        assert result == plaintext
        mock_reader.readexactly.assert_called_once_with(len(plaintext))

    @pytest.mark.asyncio
    async def test_readexactly_incomplete(self, encrypted_reader, mock_reader):
        """IncompleteReadError propagates."""
        mock_reader.readexactly.side_effect = asyncio.IncompleteReadError(b"ab", 10)

        with pytest.raises(asyncio.IncompleteReadError):
            await encrypted_reader.readexactly(10)

    def test_at_eof(self, encrypted_reader, mock_reader):
        """Test EOF detection."""
        mock_reader.at_eof = MagicMock(return_value=True)

        assert encrypted_reader.at_eof() is True

    def test_attribute_delegation(self, encrypted_reader, mock_reader):
        """Unknown attributes come from the wrapped reader."""
        mock_reader.custom_attr = "value"

        assert encrypted_reader.custom_attr == "value"


class TestEncryptedStreamWriter:
    """Tests for EncryptedStreamWriter."""

    @pytest.fixture
    def mock_writer(self):
        """Create mock StreamWriter."""
        writer = MagicMock()
        writer.drain = AsyncMock()
        writer.wait_closed = AsyncMock()
        return writer

    @pytest.fixture
    def encrypted_writer(self, mock_writer, codec):
        """Create EncryptedStreamWriter instance."""
        return EncryptedStreamWriter(mock_writer, codec)

    def test_write_encrypts(self, encrypted_writer, mock_writer):
        """Written data is encrypted with the encrypt direction."""
        reference = StreamCodec(METHOD, PASSWORD)
        reference.initialize(Direction.ENCRYPT, IV)

        encrypted_writer.write(b"Test data")

        mock_writer.write.assert_called_once_with(reference.encrypt_update(b"Test data"))
        reference.dispose()

    def test_write_empty(self, encrypted_writer, mock_writer):
        """Empty writes are skipped."""
        encrypted_writer.write(b"")

        mock_writer.write.assert_not_called()

    @pytest.mark.asyncio
    async def test_drain(self, encrypted_writer, mock_writer):
        """Test drain delegation."""
        await encrypted_writer.drain()

        mock_writer.drain.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_and_wait_closed(self, encrypted_writer, mock_writer):
        """Test close delegation."""
        encrypted_writer.close()
        await encrypted_writer.wait_closed()

        mock_writer.close.assert_called_once()
        mock_writer.wait_closed.assert_awaited_once()

    def test_get_extra_info(self, encrypted_writer, mock_writer):
        """Test get_extra_info delegation."""
        mock_writer.get_extra_info.return_value = ("127.0.0.1", 8388)

        assert encrypted_writer.get_extra_info("peername") == ("127.0.0.1", 8388)
        mock_writer.get_extra_info.assert_called_once_with("peername", None)


class TestEncryptedStreamRoundTrip:
    """Writer output fed through a real StreamReader."""

    @pytest.mark.asyncio
    async def test_round_trip(self, codec):
        """Bytes written through the writer decrypt through the reader."""
        stream = asyncio.StreamReader()
        sink = MagicMock()
        sink.write.side_effect = stream.feed_data
        writer = EncryptedStreamWriter(sink, codec)
        reader = EncryptedStreamReader(stream, codec)

        for chunk in (b"GET / HTTP/1.1\r\n", b"Host: example.com\r\n", b"\r\n"):
            writer.write(chunk)
        stream.feed_eof()

        received = b""
        while not reader.at_eof():
            received += await reader.read(7)

        assert received == b"GET / HTTP/1.1\r\nHost: example.com\r\n\r\n"
