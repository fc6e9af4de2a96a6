"""Binary values backed by HTTP(S) URLs, streamed with requests."""

import requests
from typing import Iterator, Optional

from ..core.model import BinError, ErrorKind
from .base import HTTP_TIMEOUT, CHUNK_SIZE


# Module-level session for connection pooling
_session = None


def _get_session():
    """Get or create the global requests session."""
    global _session
    if _session is None:
        _session = requests.Session()
    return _session


class HTTPStream:
    """Forward-only stream over the body of one streaming GET.

    A :meth:`skip` issued before any byte is read becomes a ``Range``
    request when the server accepts byte ranges, so a window deep into a
    large resource does not download its prefix.
    """

    def __init__(self, value: "HTTPValue"):
        self._value = value
        self._response: Optional[requests.Response] = None
        self._chunks: Optional[Iterator[bytes]] = None
        self._buffer = bytearray()
        self._started = False
        self._eof = False
        self._closed = False

    def _open(self, start: int = 0) -> int:
        """Issue the GET, from `start` when possible; return the offset served."""
        self._started = True
        headers = {'Range': f'bytes={start}-'} if start else {}
        try:
            response = self._value._session.get(
                self._value.url, headers=headers, stream=True, timeout=self._value.timeout
            )
        except requests.RequestException as e:
            raise BinError(ErrorKind.IO_FAILURE, f"GET request failed: {e}") from e

        if start and response.status_code == 416:
            # range starts past the end: nothing left to read
            response.close()
            self._eof = True
            return start
        if response.status_code >= 400:
            response.close()
            raise BinError(ErrorKind.IO_FAILURE, f"GET request failed with status {response.status_code}")

        self._response = response
        self._chunks = response.iter_content(chunk_size=CHUNK_SIZE)
        # 200 means the server ignored the range and sent everything
        return start if response.status_code == 206 else 0

    def _check_open(self):
        if self._closed:
            raise ValueError("I/O operation on closed stream")

    def _fill(self, size: int | None):
        while not self._eof and (size is None or len(self._buffer) < size):
            try:
                chunk = next(self._chunks)
            except StopIteration:
                self._eof = True
            except requests.RequestException as e:
                raise BinError(ErrorKind.IO_FAILURE, f"read failed: {e}") from e
            else:
                self._buffer.extend(chunk)

    def read(self, size: int = -1) -> bytes:
        self._check_open()
        if not self._started:
            self._open()
        if size is None or size < 0:
            self._fill(None)
            size = len(self._buffer)
        elif not self._buffer:
            self._fill(1)
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    def skip(self, n: int) -> int:
        self._check_open()
        if n <= 0:
            return 0
        skipped = 0
        if not self._started and self._value.accept_ranges:
            length = self._value.content_length
            if length is not None:
                n = min(n, length)
            skipped = self._open(n)
        while skipped < n:
            chunk = self.read(min(CHUNK_SIZE, n - skipped))
            if not chunk:
                break
            skipped += len(chunk)
        return skipped

    def available(self) -> int:
        return len(self._buffer)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._buffer.clear()
        if self._response is not None:
            self._response.close()
            self._response = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class HTTPValue:
    """Binary value whose octets live behind a URL."""

    def __init__(self, url: str, *, timeout: float = HTTP_TIMEOUT):
        self.url = url
        self.timeout = timeout
        self.content_length: Optional[int] = None
        self.accept_ranges = False
        self._session = _get_session()

        # Perform HEAD request immediately
        self._perform_head()

    def _perform_head(self):
        """Perform HEAD request to check capabilities."""
        try:
            response = self._session.head(self.url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            raise BinError(ErrorKind.IO_FAILURE, f"HEAD request failed: {e}") from e
        if response.status_code >= 400:
            raise BinError(ErrorKind.IO_FAILURE, f"HEAD request failed with status {response.status_code}")

        # Check content length
        content_length_header = response.headers.get('content-length')
        if content_length_header:
            self.content_length = int(content_length_header)

        # Check range support
        accept_ranges = response.headers.get('accept-ranges', '').lower()
        self.accept_ranges = accept_ranges == 'bytes'

    def open_stream(self) -> HTTPStream:
        return HTTPStream(self)

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        return f"HTTPValue({self.url!r})"


def open_http_value(url: str) -> HTTPValue:
    """Create an HTTP-backed binary value."""
    return HTTPValue(url)
