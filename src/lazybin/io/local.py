"""Local binary values and the default spool-backed store."""

from __future__ import annotations

import io
import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Union

from ..core.util import io_failure
from ..logger import logger
from .base import CHUNK_SIZE, SPOOL_MAX, SharedResource


class BytesValue:
    """Binary value held in memory."""

    def __init__(self, data: bytes):
        self._data = bytes(data)

    @property
    def size(self) -> int:
        return len(self._data)

    def open_stream(self) -> io.BytesIO:
        return io.BytesIO(self._data)

    def to_bytes(self) -> bytes:
        return self._data

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        return f"BytesValue(size={len(self._data)})"


class FileValue:
    """Binary value backed by a file on disk; every stream is a fresh handle."""

    def __init__(self, path: Union[Path, str]):
        self.path = Path(path)

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    def open_stream(self) -> BinaryIO:
        with io_failure(f"open {self.path}"):
            return open(self.path, "rb")

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        return f"FileValue({str(self.path)!r})"


class SpoolCache:
    """Replayable cache of a single-pass stream.

    Bytes are pulled from the source only as far as some reader has asked
    for, and kept in a ``SpooledTemporaryFile`` that moves to disk once it
    grows past `spool_max`.
    """

    def __init__(self, source, *, spool_max: int = SPOOL_MAX, close_source: bool = True):
        self._source = source
        self._close_source = close_source
        self._spool = tempfile.SpooledTemporaryFile(max_size=spool_max)
        self._spool_max = spool_max
        self._cached = 0
        self._exhausted = False
        self.closed = False

    @property
    def cached(self) -> int:
        return self._cached

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def _fill_to(self, end: int | None):
        """Pull from the source until `end` bytes are cached (None: all of it)."""
        while not self._exhausted and (end is None or self._cached < end):
            want = CHUNK_SIZE if end is None else max(CHUNK_SIZE, end - self._cached)
            with io_failure("read"):
                chunk = self._source.read(want)
            if not chunk:
                self._exhausted = True
                break
            was_in_memory = self._cached <= self._spool_max
            self._spool.seek(self._cached)
            self._spool.write(chunk)
            self._cached += len(chunk)
            if was_in_memory and self._cached > self._spool_max:
                logger.debug("spool cache rolled over to disk at %d bytes", self._cached)

    def read_at(self, pos: int, size: int) -> bytes:
        """Return up to `size` bytes starting at `pos`; ``b""`` past the end."""
        self._fill_to(None if size < 0 else pos + size)
        if pos >= self._cached:
            return b""
        n = self._cached - pos if size < 0 else min(size, self._cached - pos)
        self._spool.seek(pos)
        return self._spool.read(n)

    def advance(self, pos: int, n: int) -> int:
        """Number of bytes a reader at `pos` may skip, at most `n`."""
        self._fill_to(pos + n)
        return max(0, min(n, self._cached - pos))

    def close(self):
        if self.closed:
            return
        self.closed = True
        try:
            self._spool.close()
        finally:
            if self._close_source:
                with io_failure("close"):
                    self._source.close()


class CacheStream:
    """Independent cursor over a shared :class:`SpoolCache`."""

    def __init__(self, shared: SharedResource):
        self.shared = shared.acquire()
        self._cache: SpoolCache = shared.resource
        self._pos = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self):
        if self._closed:
            raise ValueError("I/O operation on closed stream")

    def read(self, size: int = -1) -> bytes:
        self._check_open()
        data = self._cache.read_at(self._pos, -1 if size is None else size)
        self._pos += len(data)
        return data

    def skip(self, n: int) -> int:
        self._check_open()
        if n <= 0:
            return 0
        step = self._cache.advance(self._pos, n)
        self._pos += step
        return step

    def available(self) -> int:
        self._check_open()
        return max(0, self._cache.cached - self._pos)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def close(self):
        if self._closed:
            return
        self._closed = True
        self.shared.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class CachedValue:
    """Binary value produced from a stream that can only be read once.

    The stream is consumed lazily through a :class:`SpoolCache`; every
    :meth:`open_stream` returns a new cursor from the start. The cache (and
    with it the stream) is closed once this value and every cursor opened
    from it have been closed.
    """

    def __init__(self, stream, *, spool_max: int = SPOOL_MAX, close_source: bool = True):
        self._shared = SharedResource(
            SpoolCache(stream, spool_max=spool_max, close_source=close_source),
            name="spool cache",
        )
        self._closed = False

    @property
    def shared(self) -> SharedResource:
        return self._shared

    def open_stream(self) -> CacheStream:
        return CacheStream(self._shared)

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._shared.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        return f"CachedValue(refs={self._shared.refs})"


class SpoolStore:
    """Default storage collaborator: lazy spool-backed values."""

    def __init__(self, spool_max: int = SPOOL_MAX):
        self.spool_max = spool_max

    def from_stream(self, stream) -> CachedValue:
        return CachedValue(stream, spool_max=self.spool_max)

    def from_bytes(self, data: bytes) -> BytesValue:
        return BytesValue(data)


DEFAULT_STORE = SpoolStore()


def open_local_value(source: Union[Path, str, bytes, BinaryIO]):
    """Create a binary value from a path, a byte buffer or a binary file object.

    File objects are not closed by the value; the caller owns them.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return BytesValue(bytes(source))
    if hasattr(source, 'read'):
        return CachedValue(source, close_source=False)
    return FileValue(os.fspath(source))
