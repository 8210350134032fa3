"""Stream codec for encrypted tunnel connections.

A :class:`StreamCodec` owns two independent cipher contexts, one per
direction. The relay layer supplies the method and password once, an IV per
direction through :meth:`StreamCodec.initialize`, then pushes byte chunks of
any size through :meth:`StreamCodec.encrypt_update` and
:meth:`StreamCodec.decrypt_update` in stream order. Output always has the
same length as the input.

The two directions may be driven from two different threads. Chunks of one
direction must be presented in order by a single caller at a time; there is
no seek or rewind.

Teardown is explicit: call :meth:`StreamCodec.dispose` (or use the codec as
a context manager). Disposal is idempotent and safe to race with itself and
with in-flight updates. A garbage-collection finalizer releases forgotten
codecs as a safety net only.
"""

from __future__ import annotations

import logging
import os
import threading
import weakref
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Iterator

from cryptography.exceptions import UnsupportedAlgorithm

from tunnelcodec.security.ciphers.catalog import CipherFamily, CipherSpec, lookup
from tunnelcodec.security.ciphers.native import CipherHandle, Operation
from tunnelcodec.security.kdf import bytes_to_key, derive_session_key
from tunnelcodec.utils.exceptions import (
    CipherError,
    CipherSetupError,
    InvalidStateError,
    UseAfterDisposeError,
)

if TYPE_CHECKING:  # pragma: no cover
    from tunnelcodec.models import CodecConfig

logger = logging.getLogger(__name__)

# Families whose handles carry an encrypt/decrypt operation flag
_OPERATION_FAMILIES = frozenset(
    {CipherFamily.AES, CipherFamily.BLOWFISH, CipherFamily.CAMELLIA}
)


class Direction(Enum):
    """Stream direction of a cipher context."""

    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"

    @property
    def operation(self) -> Operation:
        """Native operation performed in this direction."""
        return Operation.ENCRYPT if self is Direction.ENCRYPT else Operation.DECRYPT


class ContextState(Enum):
    """Lifecycle state of a cipher context. Transitions only move forward."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    DISPOSED = "disposed"


class SessionContext:
    """Cipher state of one direction of one codec.

    The context owns its native handle exclusively. All methods expect the
    caller to hold :attr:`lock`.
    """

    def __init__(self, direction: Direction, spec: CipherSpec):
        """Create an uninitialized context."""
        self.direction = direction
        self.spec = spec
        self.effective_key: bytes | None = None
        self.iv: bytes | None = None
        self.handle: CipherHandle | None = None
        self.state = ContextState.UNINITIALIZED
        self.lock = threading.Lock()

    def initialize(self, master_key: bytes, iv: bytes) -> None:
        """Acquire and configure the native handle.

        On failure the handle is freed and the context stays uninitialized.

        Raises:
            CipherSetupError: If key derivation or any native setup step fails

        """
        handle = CipherHandle()
        try:
            effective_key = derive_session_key(master_key, iv, self.spec)
            handle.setup(self.spec.native_name)
            handle.set_key(
                effective_key, self.spec.key_len * 8, self.direction.operation
            )
            handle.set_iv(iv)
            handle.reset()
        except (TypeError, ValueError, UnsupportedAlgorithm) as e:
            handle.free()
            msg = f"Failed to set up {self.spec.name} {self.direction.value} context: {e}"
            raise CipherSetupError(
                msg,
                {"method": self.spec.name, "direction": self.direction.value},
            ) from e

        self.handle = handle
        self.effective_key = effective_key
        self.iv = bytes(iv)
        self.state = ContextState.INITIALIZED

    def update(self, data: bytes) -> bytes:
        """Run ``data`` through the handle.

        Raises:
            CipherError: If the native update fails

        """
        handle = self.handle
        if handle is None:
            msg = f"{self.direction.value} context has no cipher handle"
            raise InvalidStateError(msg)

        if self.spec.family in _OPERATION_FAMILIES:
            # Always re-assert the operation before updating
            handle.set_operation(self.direction.operation)

        try:
            output = handle.update(data)
        except ValueError as e:
            msg = f"{self.spec.name} {self.direction.value} update failed: {e}"
            raise CipherError(msg) from e

        if len(output) != len(data):
            msg = (
                f"{self.spec.name} {self.direction.value} update returned "
                f"{len(output)} bytes for {len(data)} input bytes"
            )
            raise CipherError(msg)
        return output

    def release(self) -> None:
        """Mark the context disposed and free its handle."""
        handle = self.handle
        self.handle = None
        self.effective_key = None
        self.state = ContextState.DISPOSED
        if handle is not None:
            handle.free()


class ContextLifecycle:
    """Acquire/release protocol shared by the contexts of one codec.

    :meth:`acquire` hands out a context under its lock after checking that
    the codec is still live. :meth:`release` frees every context exactly
    once no matter how many threads call it.
    """

    def __init__(self, contexts: dict[Direction, SessionContext], label: str = ""):
        """Track ``contexts`` for release."""
        self._contexts = contexts
        self._label = label
        self._lock = threading.Lock()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        """True once release has started."""
        return self._disposed

    @contextmanager
    def acquire(self, direction: Direction) -> Iterator[SessionContext]:
        """Hold the context of ``direction`` for the duration of the block.

        Raises:
            UseAfterDisposeError: If the codec has been disposed

        """
        context = self._contexts[direction]
        with context.lock:
            if self._disposed or context.state is ContextState.DISPOSED:
                msg = f"{direction.value} context used after dispose"
                raise UseAfterDisposeError(msg, {"codec": self._label})
            yield context

    def release(self, finalizing: bool = False) -> bool:
        """Release every context once.

        Args:
            finalizing: True when called by the garbage-collection backstop

        Returns:
            True if this call performed the release, False if it was a no-op

        """
        with self._lock:
            if self._disposed:
                return False
            self._disposed = True

        if finalizing:
            logger.warning(
                "Codec %s was not disposed explicitly; releasing cipher contexts",
                self._label,
            )

        for direction, context in self._contexts.items():
            # Waits for an in-flight update on this direction to finish
            with context.lock:
                try:
                    context.release()
                except Exception:
                    logger.debug(
                        "Ignoring error while releasing %s context of %s",
                        direction.value,
                        self._label,
                        exc_info=True,
                    )
        return True


class StreamCodec:
    """Length-preserving stream cipher codec with one context per direction."""

    def __init__(self, method: str, password: bytes | str, is_udp: bool = False):
        """Create a codec for ``method`` keyed from ``password``.

        Args:
            method: Cipher method name from the catalog
            password: Configured password
            is_udp: True when the codec serves datagrams rather than a stream

        Raises:
            UnsupportedCipherError: If ``method`` is not in the catalog

        """
        self.spec = lookup(method)
        self.method = method
        self.is_udp = is_udp
        self._master_key = bytes_to_key(password, self.spec.key_len)
        self._contexts = {
            direction: SessionContext(direction, self.spec) for direction in Direction
        }
        self._lifecycle = ContextLifecycle(self._contexts, label=method)
        # The callback must not reference self
        self._finalizer = weakref.finalize(
            self, self._lifecycle.release, finalizing=True
        )
        self._finalizer.atexit = False

    @classmethod
    def from_config(cls, codec_config: CodecConfig | None = None) -> StreamCodec:
        """Create a codec from the ``[codec]`` configuration section.

        Args:
            codec_config: Codec settings; the global configuration if None

        """
        if codec_config is None:
            from tunnelcodec.config.config import get_codec_config

            codec_config = get_codec_config()
        return cls(codec_config.method, codec_config.password, codec_config.is_udp)

    @property
    def key_len(self) -> int:
        """Key length of the selected cipher in bytes."""
        return self.spec.key_len

    @property
    def iv_len(self) -> int:
        """IV length of the selected cipher in bytes."""
        return self.spec.iv_len

    @property
    def disposed(self) -> bool:
        """True once :meth:`dispose` (or the finalizer) has run."""
        return self._lifecycle.disposed

    def state(self, direction: Direction | str) -> ContextState:
        """Return the lifecycle state of one direction."""
        return self._contexts[Direction(direction)].state

    def initialize(self, direction: Direction | str, iv: bytes) -> None:
        """Set up the cipher context of ``direction`` with ``iv``.

        Args:
            direction: Direction to initialize
            iv: Connection IV, :attr:`iv_len` bytes

        Raises:
            InvalidStateError: If the direction is already initialized
            UseAfterDisposeError: If the codec has been disposed
            CipherSetupError: If the native cipher could not be set up

        """
        direction = Direction(direction)
        with self._lifecycle.acquire(direction) as context:
            if context.state is not ContextState.UNINITIALIZED:
                msg = f"{direction.value} context is already initialized"
                raise InvalidStateError(msg, {"method": self.method})
            context.initialize(self._master_key, iv)
        logger.debug("Initialized %s %s context", self.method, direction.value)

    def update(self, direction: Direction | str, data: bytes) -> bytes:
        """Transform the next chunk of the ``direction`` stream.

        Args:
            direction: Direction of the chunk
            data: Next bytes of the stream, any length

        Returns:
            Transformed bytes, same length as ``data``

        Raises:
            InvalidStateError: If the direction has not been initialized
            UseAfterDisposeError: If the codec has been disposed

        """
        direction = Direction(direction)
        with self._lifecycle.acquire(direction) as context:
            if context.state is not ContextState.INITIALIZED:
                msg = f"{direction.value} context used before initialize"
                raise InvalidStateError(msg, {"method": self.method})
            return context.update(data)

    def encrypt_update(self, data: bytes) -> bytes:
        """Encrypt the next chunk of the outbound stream."""
        return self.update(Direction.ENCRYPT, data)

    def decrypt_update(self, data: bytes) -> bytes:
        """Decrypt the next chunk of the inbound stream."""
        return self.update(Direction.DECRYPT, data)

    def dispose(self) -> None:
        """Release both cipher contexts. Idempotent and never raises."""
        self._finalizer.detach()
        if self._lifecycle.release():
            logger.debug("Disposed %s codec", self.method)

    def __enter__(self) -> StreamCodec:
        """Enter the context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Dispose the codec on exit."""
        self.dispose()
        return False

    def __repr__(self) -> str:
        """Return a representation without key material."""
        states = ", ".join(
            f"{direction.value}={context.state.value}"
            for direction, context in self._contexts.items()
        )
        return f"<StreamCodec {self.method} {states}>"


def random_iv(method: str) -> bytes:
    """Return a fresh random IV sized for ``method``."""
    return os.urandom(lookup(method).iv_len)


def encrypt_all(method: str, password: bytes | str, iv: bytes, data: bytes) -> bytes:
    """Encrypt one self-contained datagram with its own IV.

    Each datagram gets a fresh codec; nothing carries over between calls.
    """
    with StreamCodec(method, password, is_udp=True) as codec:
        codec.initialize(Direction.ENCRYPT, iv)
        return codec.encrypt_update(data)


def decrypt_all(method: str, password: bytes | str, iv: bytes, data: bytes) -> bytes:
    """Decrypt one datagram produced by :func:`encrypt_all`."""
    with StreamCodec(method, password, is_udp=True) as codec:
        codec.initialize(Direction.DECRYPT, iv)
        return codec.decrypt_update(data)
