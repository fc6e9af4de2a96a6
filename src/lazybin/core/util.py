from __future__ import annotations
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from .model import BinError, ErrorKind, Result


def check_offset(offset: int, name: str = "offset") -> int:
    if offset < 0:
        raise BinError(ErrorKind.INDEX_OUT_OF_RANGE, f"${name} is negative: {offset}")
    return offset


def check_size(size: int, name: str = "size") -> int:
    if size < 0:
        raise BinError(ErrorKind.NEGATIVE_SIZE, f"${name} is negative: {size}")
    return size


def check_octet(octet: int, name: str = "octet") -> int:
    # 0..255 inclusive
    if not 0 <= octet <= 0xFF:
        raise BinError(ErrorKind.OCTET_OUT_OF_RANGE, f"${name}: {octet} is out of range")
    return octet


@contextmanager
def io_failure(action: str) -> Iterator[None]:
    """Re-raise any ``OSError`` from a collaborator stream as an io-failure."""
    try:
        yield
    except OSError as e:
        raise BinError(ErrorKind.IO_FAILURE, f"{action} failed: {e}") from e


def result_asdict(res: Result) -> Dict[str, Any]:
    """Return a JSON-serialisable dict for CLI output."""
    if not res.success:
        return {"success": False, "error": res.error, "kind": res.kind}
    payload = dict(res.data or {})
    payload["success"] = True
    return payload
