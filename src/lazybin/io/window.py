"""Bounded window over a forward-only source stream."""

from __future__ import annotations

from ..core.model import BinError, ErrorKind
from ..core.util import check_offset, check_size, io_failure
from .base import UNBOUNDED, CHUNK_SIZE, skip_stream, stream_available


class BoundedWindowStream:
    """Expose only ``[offset, offset + length)`` of `source`.

    `length` may be ``UNBOUNDED`` to run through the end of the source. The
    leading `offset` bytes are skipped lazily, on first access. Running out
    of source before a finite window is complete raises an
    ``index-out-of-range`` :class:`BinError`, which is distinct from the
    ordinary ``b""`` end-of-window result.

    If the source carries a ``shared`` :class:`SharedResource`, the window
    takes its own reference on it and gives it back on close.
    """

    def __init__(self, source, offset: int, length: int = UNBOUNDED):
        check_offset(offset)
        if length != UNBOUNDED:
            check_size(length)
        self._source = source
        self.offset = offset
        self.length = length
        self._delivered = 0
        self._started = False
        self._closed = False
        self._shared = getattr(source, "shared", None)
        if self._shared is not None:
            self._shared.acquire()

    @property
    def remaining(self) -> int | None:
        """Bytes left in the window, or ``None`` when unbounded."""
        if self.length == UNBOUNDED:
            return None
        return self.length - self._delivered

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self):
        if self._closed:
            raise ValueError("I/O operation on closed window")

    def _seek_region_start(self):
        if self._started:
            return
        self._started = True
        # a short skip is not an error by itself; the next read reports it
        with io_failure("skip to window start"):
            skip_stream(self._source, self.offset)

    def _out_of_range(self) -> BinError:
        return BinError(
            ErrorKind.INDEX_OUT_OF_RANGE,
            f"reached end of source before end of region "
            f"(offset={self.offset}, length={self.length}, delivered={self._delivered})",
        )

    def read(self, size: int = -1) -> bytes:
        self._check_open()
        self._seek_region_start()
        if size is None or size < 0:
            return self._read_all()

        remaining = self.remaining
        if remaining is not None:
            size = min(size, remaining)
        if size == 0:
            return b""

        with io_failure("read"):
            data = self._source.read(size)
        if not data:
            if remaining is not None:
                raise self._out_of_range()
            return b""
        self._delivered += len(data)
        return data

    def _read_all(self) -> bytes:
        buf = bytearray()
        while True:
            chunk = self.read(CHUNK_SIZE)
            if not chunk:
                return bytes(buf)
            buf.extend(chunk)

    def skip(self, n: int) -> int:
        self._check_open()
        self._seek_region_start()
        remaining = self.remaining
        if remaining is not None:
            n = min(n, remaining)
        if n <= 0:
            return 0
        with io_failure("skip"):
            skipped = skip_stream(self._source, n)
        self._delivered += skipped
        return skipped

    def available(self) -> int:
        self._check_open()
        self._seek_region_start()
        with io_failure("available"):
            available = stream_available(self._source)
        remaining = self.remaining
        if remaining is not None:
            return min(available, remaining)
        return available

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def close(self):
        if self._closed:
            return
        self._closed = True
        try:
            with io_failure("close"):
                self._source.close()
        finally:
            if self._shared is not None:
                self._shared.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
