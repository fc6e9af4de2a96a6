from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class ErrorKind(Enum):
    """Closed set of error codes raised by lazybin operations."""

    INDEX_OUT_OF_RANGE = "index-out-of-range"
    NEGATIVE_SIZE = "negative-size"
    OCTET_OUT_OF_RANGE = "octet-out-of-range"
    NON_NUMERIC_CHARACTER = "non-numeric-character"
    UNKNOWN_ENCODING = "unknown-encoding"
    CONVERSION_ERROR = "conversion-error"
    DIFFERING_LENGTH_ARGUMENTS = "differing-length-arguments"  # reserved
    UNKNOWN_SIGNIFICANCE_ORDER = "unknown-significance-order"  # reserved
    IO_FAILURE = "io-failure"

    @property
    def code(self) -> str:
        return self.value


class BinError(RuntimeError):
    """Raised by every lazybin operation; ``kind`` tells the failures apart."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(f"{kind.code}: {message}")
        self.kind = kind
        self.message = message


@dataclass(slots=True)
class Result:
    success: bool
    data: Dict[str, Any] | None
    error: str | None
    kind: str | None = None     # ErrorKind code on failure
