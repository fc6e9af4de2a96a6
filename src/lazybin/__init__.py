"""lazybin - lazy, stream-composed operations over arbitrarily large binary values."""

from contextlib import closing

from .core.model import BinError, ErrorKind, Result                  # re-export
from .io import (
    open_value, BoundedWindowStream, ConcatStream, SharedResource,
    BytesValue, FileValue, CachedValue, HTTPValue, SpoolStore, DEFAULT_STORE, UNBOUNDED,
)
from .ops.basic import length, part, join, insert_before, pad_left, pad_right, find
from .ops.conversion import hex, bin, octal, to_octets, from_octets
from .ops.text import decode_string, encode_string
from .io.base import drain
from .core.util import io_failure


def read_bytes(value) -> bytes:
    """Materialise `value` fully into memory."""
    with closing(value.open_stream()) as stream, io_failure("read"):
        return drain(stream)


__all__ = [
    "length", "part", "join", "insert_before", "pad_left", "pad_right", "find",
    "hex", "bin", "octal", "to_octets", "from_octets",
    "decode_string", "encode_string",
    "open_value", "read_bytes",
    "BoundedWindowStream", "ConcatStream", "SharedResource",
    "BytesValue", "FileValue", "CachedValue", "HTTPValue", "SpoolStore", "DEFAULT_STORE", "UNBOUNDED",
    "BinError", "ErrorKind", "Result",
]
