"""Text encoding and decoding of binary values."""

from __future__ import annotations

import codecs
from contextlib import closing
from typing import Optional

from ..core.model import BinError, ErrorKind
from ..core.util import check_offset, check_size, io_failure
from ..io.base import DEFAULT_ENCODING, UNBOUNDED, BinaryStore, BinaryValue, drain
from ..io.local import DEFAULT_STORE
from ..io.window import BoundedWindowStream


def resolve_encoding(encoding: Optional[str]) -> codecs.CodecInfo:
    """Look up a character encoding by name (default UTF-8)."""
    name = encoding or DEFAULT_ENCODING
    try:
        info = codecs.lookup(name)
    except LookupError:
        raise BinError(ErrorKind.UNKNOWN_ENCODING, f"$encoding is not recognized: {name}") from None
    # bytes-to-bytes codecs such as base64 are not character encodings
    if not getattr(info, "_is_text_encoding", True):
        raise BinError(ErrorKind.UNKNOWN_ENCODING, f"$encoding is not a character encoding: {name}")
    return info


def decode_string(value: Optional[BinaryValue], encoding: Optional[str] = None,
                  offset: Optional[int] = None, size: Optional[int] = None) -> Optional[str]:
    """Decode `value` (or the region `offset`/`size` of it) as text."""
    if value is None:
        return None
    info = resolve_encoding(encoding)
    if offset is not None:
        check_offset(offset)
    if size is not None:
        check_size(size)

    with closing(value.open_stream()) as stream:
        if offset is not None or size is not None:
            stream = BoundedWindowStream(stream, offset or 0, UNBOUNDED if size is None else size)
        with closing(stream), io_failure("read"):
            data = drain(stream)

    try:
        return info.decode(data)[0]
    except UnicodeDecodeError as e:
        raise BinError(ErrorKind.CONVERSION_ERROR, f"cannot decode as {info.name}: {e.reason}") from e


def encode_string(text: Optional[str], encoding: Optional[str] = None, *,
                  store: BinaryStore = DEFAULT_STORE) -> Optional[BinaryValue]:
    """Encode `text` into a new binary value."""
    if text is None:
        return None
    info = resolve_encoding(encoding)
    try:
        data = info.encode(text)[0]
    except UnicodeEncodeError as e:
        raise BinError(ErrorKind.CONVERSION_ERROR, f"cannot encode as {info.name}: {e.reason}") from e
    return store.from_bytes(data)
