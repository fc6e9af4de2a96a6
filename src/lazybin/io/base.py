"""Base protocols, shared types and stream helpers for the I/O layer."""

from __future__ import annotations

import io
import threading
from typing import Iterator, Protocol, runtime_checkable

from ..core.model import BinError, ErrorKind
from ..logger import logger


CHUNK_SIZE = 64 * 1024            # 64 KB per drain/skip step
SPOOL_MAX = 10 * 1024 * 1024      # 10 MB kept in memory before spilling to disk
HTTP_TIMEOUT = 30                 # seconds
DEFAULT_ENCODING = "UTF-8"

UNBOUNDED = -1                    # window length meaning "through end of source"


@runtime_checkable
class ByteStream(Protocol):
    """Protocol for forward-only byte streams.

    Any binary file object satisfies it; ``skip`` and ``available`` are
    optional and emulated by :func:`skip_stream` / :func:`stream_available`.
    """

    def read(self, size: int = -1) -> bytes:
        """Return up to `size` bytes (all remaining if negative).
        A short result is legal; ``b""`` means end-of-stream.
        """
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class BinaryValue(Protocol):
    """An immutable binary value exposed only through fresh streams."""

    def open_stream(self) -> ByteStream:
        """Return an independent stream positioned at the first octet."""
        ...


@runtime_checkable
class BinaryStore(Protocol):
    """Storage collaborator that materialises operation results."""

    def from_stream(self, stream: ByteStream) -> BinaryValue:
        """Take ownership of `stream` and return a value reading from it."""
        ...

    def from_bytes(self, data: bytes) -> BinaryValue:
        ...


class RefCount:
    """Counter with atomic increment/decrement."""

    def __init__(self, initial: int = 1):
        self._value = initial
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    def increment_if_positive(self) -> int:
        """Increment unless the count already reached 0; return the new count, or 0."""
        with self._lock:
            if self._value <= 0:
                return 0
            self._value += 1
            return self._value

    def decrement(self) -> int:
        with self._lock:
            self._value -= 1
            return self._value


class SharedResource:
    """Owned handle on a closeable resource used by several holders.

    The creator holds the first reference. Each additional holder calls
    :meth:`acquire` and later :meth:`release`; the resource is closed by
    whichever holder releases the last reference.
    """

    def __init__(self, resource, *, name: str | None = None):
        self._resource = resource
        self._refs = RefCount(1)
        self.name = name or type(resource).__name__

    @property
    def resource(self):
        return self._resource

    @property
    def refs(self) -> int:
        return self._refs.value

    @property
    def released(self) -> bool:
        return self._refs.value <= 0

    def acquire(self) -> "SharedResource":
        refs = self._refs.increment_if_positive()
        if refs == 0:
            raise BinError(ErrorKind.IO_FAILURE, f"shared {self.name} already released")
        logger.debug("acquired shared %s (refs=%d)", self.name, refs)
        return self

    def release(self) -> None:
        refs = self._refs.decrement()
        logger.debug("released shared %s (refs=%d)", self.name, refs)
        if refs == 0:
            logger.debug("closing shared %s", self.name)
            self._resource.close()
        elif refs < 0:
            raise BinError(ErrorKind.IO_FAILURE, f"shared {self.name} released more often than acquired")


def skip_stream(stream, n: int) -> int:
    """Skip up to `n` bytes of `stream`, returning how many were skipped.

    Returns less than `n` only when the stream ran out.
    """
    if n <= 0:
        return 0

    skip = getattr(stream, "skip", None)
    if skip is not None:
        skipped = 0
        while skipped < n:
            step = skip(n - skipped)
            if step <= 0:
                break
            skipped += step
        return skipped

    seekable = getattr(stream, "seekable", None)
    if seekable is not None and seekable():
        # seeking past the end succeeds silently, so clamp to the real end
        cur = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        target = min(cur + n, end)
        stream.seek(target)
        return target - cur

    skipped = 0
    while skipped < n:
        chunk = stream.read(min(CHUNK_SIZE, n - skipped))
        if not chunk:
            break
        skipped += len(chunk)
    return skipped


def stream_available(stream) -> int:
    """Bytes readable from `stream` without blocking, 0 when unknown."""
    available = getattr(stream, "available", None)
    if available is not None:
        return available()
    if isinstance(stream, io.BytesIO):
        return max(0, len(stream.getbuffer()) - stream.tell())
    return 0


def iter_chunks(stream, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Yield successive non-empty chunks of `stream` until end-of-stream."""
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            return
        yield chunk


def drain(stream) -> bytes:
    """Read `stream` to its end and return everything."""
    buf = bytearray()
    for chunk in iter_chunks(stream):
        buf.extend(chunk)
    return bytes(buf)
