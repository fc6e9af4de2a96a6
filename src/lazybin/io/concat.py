"""Logical concatenation of several forward-only streams."""

from __future__ import annotations

from typing import Sequence

from ..core.model import BinError, ErrorKind
from ..core.util import io_failure
from ..logger import logger
from .base import CHUNK_SIZE, skip_stream, stream_available


class ConcatStream:
    """Present an ordered list of streams as one continuous stream.

    Reads move on to the next source whenever the current one reports
    end-of-stream, so a request is only ever short at the very end. Closing
    closes every source, last first, whether or not it was read.
    """

    def __init__(self, sources: Sequence):
        if not sources:
            raise ValueError("ConcatStream requires at least one source")
        self._sources = list(sources)
        self._idx = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self):
        if self._closed:
            raise ValueError("I/O operation on closed stream")

    def _advance(self) -> bool:
        """Move to the next source; False when there is none."""
        if self._idx + 1 < len(self._sources):
            self._idx += 1
            return True
        return False

    def read(self, size: int = -1) -> bytes:
        self._check_open()
        unlimited = size is None or size < 0
        buf = bytearray()
        while unlimited or len(buf) < size:
            want = CHUNK_SIZE if unlimited else size - len(buf)
            with io_failure("read"):
                data = self._sources[self._idx].read(want)
            if data:
                buf.extend(data)
            elif not self._advance():
                break
        return bytes(buf)

    def skip(self, n: int) -> int:
        self._check_open()
        skipped = 0
        while skipped < n:
            with io_failure("skip"):
                step = skip_stream(self._sources[self._idx], n - skipped)
            if step > 0:
                skipped += step
            elif not self._advance():
                break
        return skipped

    def available(self) -> int:
        self._check_open()
        with io_failure("available"):
            return stream_available(self._sources[self._idx])

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def close(self):
        if self._closed:
            return
        self._closed = True

        first: Exception | None = None
        for source in reversed(self._sources):
            try:
                source.close()
            except Exception as e:
                if first is None:
                    first = e
                else:
                    logger.warning("further failure closing %s: %s", type(source).__name__, e)

        if first is not None:
            if isinstance(first, BinError):
                raise first
            raise BinError(ErrorKind.IO_FAILURE, f"first exception on close: {first}") from first

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
