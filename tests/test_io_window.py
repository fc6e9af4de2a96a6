"""Tests for the bounded window stream."""

import io

import pytest

from lazybin.core.model import BinError, ErrorKind
from lazybin.io.base import UNBOUNDED
from lazybin.io.local import CachedValue
from lazybin.io.window import BoundedWindowStream


class TrickleStream:
    """Non-seekable stream that hands out at most `step` bytes per read."""

    def __init__(self, data: bytes, step: int = 2):
        self._data = data
        self._pos = 0
        self._step = step
        self.closed = False
        self.reads = 0

    def read(self, size=-1):
        self.reads += 1
        if size is None or size < 0:
            size = len(self._data)
        n = min(size, self._step)
        chunk = self._data[self._pos:self._pos + n]
        self._pos += len(chunk)
        return chunk

    def close(self):
        self.closed = True


class TestBoundedWindowStream:
    """Test reads inside, across and beyond a window."""

    def test_finite_window(self):
        """Test reading a finite region."""
        window = BoundedWindowStream(io.BytesIO(b"0123456789"), 2, 3)
        assert window.read() == b"234"
        assert window.read() == b""
        assert window.read(10) == b""

    def test_unbounded_window(self):
        """Test reading through the end of the source."""
        window = BoundedWindowStream(io.BytesIO(b"0123456789"), 7)
        assert window.length == UNBOUNDED
        assert window.remaining is None
        assert window.read() == b"789"

    def test_partial_reads_within_window(self):
        """Test that small reads are served piecewise."""
        window = BoundedWindowStream(io.BytesIO(b"0123456789"), 1, 6)
        assert window.read(2) == b"12"
        assert window.read(2) == b"34"
        assert window.read(10) == b"56"  # clamped to the window
        assert window.remaining == 0

    def test_short_reads_are_not_errors(self):
        """Test a source that returns less than requested."""
        source = TrickleStream(b"0123456789", step=2)
        window = BoundedWindowStream(source, 3, 5)
        assert window.read(5) == b"34"
        assert window.read() == b"567"

    def test_region_past_end_raises(self):
        """Test that a region longer than the data is index-out-of-range."""
        window = BoundedWindowStream(io.BytesIO(b"0123456789"), 8, 5)
        assert window.read(2) == b"89"
        with pytest.raises(BinError) as exc:
            window.read(1)
        assert exc.value.kind is ErrorKind.INDEX_OUT_OF_RANGE

    def test_region_past_end_raises_on_full_read(self):
        """Test read() of an overlong region."""
        window = BoundedWindowStream(io.BytesIO(b"0123456789"), 8, 5)
        with pytest.raises(BinError, match="index-out-of-range"):
            window.read()

    def test_offset_past_end(self):
        """Test windows that start beyond the data."""
        # unbounded and empty windows are simply empty
        assert BoundedWindowStream(io.BytesIO(b"0123"), 10).read() == b""
        assert BoundedWindowStream(io.BytesIO(b"0123"), 10, 0).read() == b""
        # a finite window promises octets that do not exist
        with pytest.raises(BinError) as exc:
            BoundedWindowStream(io.BytesIO(b"0123"), 10, 1).read()
        assert exc.value.kind is ErrorKind.INDEX_OUT_OF_RANGE

    def test_offset_skip_on_non_seekable_source(self):
        """Test skipping to the region start by reading."""
        source = TrickleStream(b"abcdefghij", step=3)
        window = BoundedWindowStream(source, 4, 3)
        assert window.read() == b"efg"

    def test_skip_is_lazy(self):
        """Test nothing is read before first access."""
        source = TrickleStream(b"abcdefghij", step=3)
        BoundedWindowStream(source, 4, 3)
        assert source.reads == 0

    def test_skip_clamps_to_window(self):
        """Test skip never moves past the window end."""
        window = BoundedWindowStream(io.BytesIO(b"0123456789"), 2, 5)
        assert window.skip(2) == 2
        assert window.read() == b"456"

        window = BoundedWindowStream(io.BytesIO(b"0123456789"), 2, 5)
        assert window.skip(100) == 5
        assert window.read() == b""

    def test_skip_unbounded(self):
        """Test skip in an unbounded window stops at end of source."""
        window = BoundedWindowStream(io.BytesIO(b"0123456789"), 2)
        assert window.skip(100) == 8

    def test_available(self):
        """Test available() is the smaller of source and window."""
        window = BoundedWindowStream(io.BytesIO(b"0123456789"), 2, 3)
        assert window.available() == 3
        window = BoundedWindowStream(io.BytesIO(b"0123456789"), 2)
        assert window.available() == 8
        window = BoundedWindowStream(TrickleStream(b"0123456789"), 2, 3)
        assert window.available() == 0  # source cannot tell

    def test_argument_validation(self):
        """Test negative offsets and sizes are rejected at construction."""
        with pytest.raises(BinError) as exc:
            BoundedWindowStream(io.BytesIO(b""), -1)
        assert exc.value.kind is ErrorKind.INDEX_OUT_OF_RANGE

        with pytest.raises(BinError) as exc:
            BoundedWindowStream(io.BytesIO(b""), 0, -2)
        assert exc.value.kind is ErrorKind.NEGATIVE_SIZE

    def test_close(self):
        """Test close delegates once and forbids further reads."""
        source = TrickleStream(b"0123")
        with BoundedWindowStream(source, 0, 2) as window:
            assert window.read() == b"01"
        assert source.closed
        assert window.closed
        window.close()  # idempotent
        with pytest.raises(ValueError):
            window.read()

    def test_chained_windows(self):
        """Test a window over a window."""
        inner = BoundedWindowStream(io.BytesIO(b"0123456789"), 2, 6)   # 234567
        outer = BoundedWindowStream(inner, 1, 3)
        assert outer.read() == b"345"

        inner = BoundedWindowStream(io.BytesIO(b"0123456789"), 2, 3)   # 234
        outer = BoundedWindowStream(inner, 1, 5)
        with pytest.raises(BinError, match="index-out-of-range"):
            outer.read()


class TestSharedWindows:
    """Test reference counting of shared backing streams."""

    def test_window_holds_reference(self):
        """Test the cache outlives its value while a window is open."""
        source = io.BytesIO(b"0123456789")
        value = CachedValue(source)
        stream = value.open_stream()
        assert value.shared.refs == 2

        window = BoundedWindowStream(stream, 3, 4)
        assert value.shared.refs == 3

        value.close()
        assert value.shared.refs == 2
        assert window.read() == b"3456"
        assert not source.closed

        window.close()
        assert value.shared.refs == 0
        assert value.shared.released
        assert source.closed

    def test_two_windows_one_value(self):
        """Test independent regions of one value."""
        source = io.BytesIO(bytes(range(100)))
        with CachedValue(source) as value:
            first = BoundedWindowStream(value.open_stream(), 0, 10)
            second = BoundedWindowStream(value.open_stream(), 50, 10)
            assert second.read() == bytes(range(50, 60))
            assert first.read() == bytes(range(10))
            first.close()
            second.close()
            assert value.shared.refs == 1
        assert source.closed
