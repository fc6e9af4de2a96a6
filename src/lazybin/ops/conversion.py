"""Conversions between digit strings, octet lists and binary values."""

from __future__ import annotations

import binascii
from contextlib import closing
from typing import List, Optional, Sequence

from ..core.model import BinError, ErrorKind
from ..core.util import io_failure
from ..io.base import BinaryStore, BinaryValue, iter_chunks
from ..io.local import DEFAULT_STORE

_BIN_DIGITS = frozenset("01")
_OCTAL_DIGITS = frozenset("01234567")


def _first_invalid(text: str, alphabet: frozenset) -> int:
    return next((i for i, ch in enumerate(text) if ch not in alphabet), -1)


def _non_numeric(text: str, pos: int, what: str) -> BinError:
    return BinError(
        ErrorKind.NON_NUMERIC_CHARACTER,
        f"invalid {what} digit {text[pos]!r} at position {pos}",
    )


def hex(text: Optional[str], *, store: BinaryStore = DEFAULT_STORE) -> Optional[BinaryValue]:
    """Decode hexadecimal digits; an odd count implies a leading ``0``."""
    if not text:
        return None
    digits = "0" + text if len(text) % 2 else text
    try:
        data = binascii.unhexlify(digits.encode("ascii"))
    except (UnicodeEncodeError, binascii.Error, ValueError):
        pos = _first_invalid(text, frozenset("0123456789abcdefABCDEF"))
        raise _non_numeric(text, max(pos, 0), "hexadecimal") from None
    return store.from_bytes(data)


def bin(text: Optional[str], *, store: BinaryStore = DEFAULT_STORE) -> Optional[BinaryValue]:
    """Decode ``0``/``1`` digits, eight per octet.

    A final group shorter than eight digits is left-padded with ``0``.
    """
    if text is None:
        return None
    pos = _first_invalid(text, _BIN_DIGITS)
    if pos != -1:
        raise _non_numeric(text, pos, "binary")
    data = bytes(
        int(text[start:start + 8].rjust(8, "0"), 2)
        for start in range(0, len(text), 8)
    )
    return store.from_bytes(data)


def octal(text: Optional[str], *, store: BinaryStore = DEFAULT_STORE) -> Optional[BinaryValue]:
    """Decode an octal number into its minimal big-endian octets."""
    if text is None:
        return None
    pos = _first_invalid(text, _OCTAL_DIGITS)
    if pos != -1:
        raise _non_numeric(text, pos, "octal")
    if not text:
        return store.from_bytes(b"")
    number = int(text, 8)
    data = number.to_bytes(max(1, (number.bit_length() + 7) // 8), "big")
    return store.from_bytes(data)


def to_octets(value: BinaryValue) -> List[int]:
    """Every octet of `value` as an integer 0-255, in order."""
    if value is None:
        raise ValueError("$in argument cannot be absent")
    octets: List[int] = []
    with closing(value.open_stream()) as stream, io_failure("read"):
        for chunk in iter_chunks(stream):
            octets.extend(chunk)
    return octets


def from_octets(octets: Optional[Sequence[int]], *, store: BinaryStore = DEFAULT_STORE) -> BinaryValue:
    """Pack integers 0-255 into a binary value."""
    if not octets:
        return store.from_bytes(b"")
    for i, octet in enumerate(octets):
        if not 0 <= octet <= 0xFF:
            raise BinError(ErrorKind.OCTET_OUT_OF_RANGE, f"octet at index {i} is out of range: {octet}")
    return store.from_bytes(bytes(octets))
