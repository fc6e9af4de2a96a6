"""Length, slicing, joining, splicing, padding and search over binary values.

Every operation that can be expressed as a view over the input streams is
returned lazily: the composed stream is handed to the store and nothing is
read until the result is consumed. Argument checks run before any stream is
opened; a region that turns out to exceed the data is reported as
``index-out-of-range`` when the result is read.
"""

from __future__ import annotations

import io
from contextlib import ExitStack, closing
from typing import Callable, Optional, Sequence

from ..core.util import check_octet, check_offset, check_size, io_failure
from ..io.base import UNBOUNDED, BinaryStore, BinaryValue, iter_chunks, drain
from ..io.concat import ConcatStream
from ..io.local import DEFAULT_STORE
from ..io.window import BoundedWindowStream


def _compose(store: BinaryStore, build: Callable[[ExitStack], object]) -> BinaryValue:
    """Build a composite stream and hand it to `store`.

    `build` registers every stream it opens on the stack, so a failure
    while composing closes whatever was opened so far. Once the composite
    exists it owns its parts.
    """
    with ExitStack() as stack:
        composite = build(stack)
        stack.pop_all()
    try:
        return store.from_stream(composite)
    except BaseException:
        composite.close()
        raise


def _open(stack: ExitStack, value: BinaryValue):
    return stack.enter_context(closing(value.open_stream()))


def _window(stack: ExitStack, value: BinaryValue, offset: int, length: int = UNBOUNDED):
    window = BoundedWindowStream(_open(stack, value), offset, length)
    stack.callback(window.close)
    return window


def length(value: BinaryValue) -> int:
    """Size of `value` in octets."""
    if value is None:
        raise ValueError("$in argument cannot be absent")
    count = 0
    with closing(value.open_stream()) as stream, io_failure("read"):
        for chunk in iter_chunks(stream):
            count += len(chunk)
    return count


def part(value: Optional[BinaryValue], offset: int, size: Optional[int] = None, *,
         store: BinaryStore = DEFAULT_STORE) -> Optional[BinaryValue]:
    """The `size` octets of `value` from `offset` (to the end when `size` is None)."""
    if value is None:
        return None
    check_offset(offset)
    if size is not None:
        check_size(size)
    region = UNBOUNDED if size is None else size
    return _compose(store, lambda stack: _window(stack, value, offset, region))


def join(values: Optional[Sequence[BinaryValue]], *,
         store: BinaryStore = DEFAULT_STORE) -> BinaryValue:
    """Concatenation of `values` in order; empty input gives an empty value."""
    if not values:
        return store.from_bytes(b"")
    return _compose(store, lambda stack: ConcatStream([_open(stack, v) for v in values]))


def insert_before(value: Optional[BinaryValue], offset: int, extra: Optional[BinaryValue] = None, *,
                  store: BinaryStore = DEFAULT_STORE) -> Optional[BinaryValue]:
    """`value` with `extra` spliced in before octet `offset`."""
    check_offset(offset)
    if value is None:
        return None
    if extra is None:
        return value

    def build(stack):
        if offset == 0:
            return ConcatStream([_open(stack, extra), _open(stack, value)])
        return ConcatStream([
            _window(stack, value, 0, offset),
            _open(stack, extra),
            _window(stack, value, offset),
        ])

    return _compose(store, build)


def _pad(value, size, octet, store, *, left):
    if value is None:
        return None
    check_size(size)
    check_octet(octet)

    def build(stack):
        filler = io.BytesIO(bytes([octet]) * size)
        body = _open(stack, value)
        return ConcatStream([filler, body] if left else [body, filler])

    return _compose(store, build)


def pad_left(value: Optional[BinaryValue], size: int, octet: int = 0, *,
             store: BinaryStore = DEFAULT_STORE) -> Optional[BinaryValue]:
    """`value` preceded by `size` copies of `octet`."""
    return _pad(value, size, octet, store, left=True)


def pad_right(value: Optional[BinaryValue], size: int, octet: int = 0, *,
              store: BinaryStore = DEFAULT_STORE) -> Optional[BinaryValue]:
    """`value` followed by `size` copies of `octet`."""
    return _pad(value, size, octet, store, left=False)


def find(value: Optional[BinaryValue], offset: int, search: Optional[BinaryValue]) -> Optional[int]:
    """Lowest index at or after `offset` where `search` occurs in `value`.

    Both operands are read into memory: matching needs to revisit data
    already consumed. Returns None when there is no match.
    """
    if value is None:
        return None
    check_offset(offset)

    with closing(value.open_stream()) as stream, io_failure("read"):
        data = drain(stream)
    if search is None:
        needle = b""
    else:
        with closing(search.open_stream()) as stream, io_failure("read"):
            needle = drain(stream)

    if not needle:
        return offset
    if offset > len(data) or len(needle) > len(data) - offset:
        return None
    found = data.find(needle, offset)
    return None if found == -1 else found
