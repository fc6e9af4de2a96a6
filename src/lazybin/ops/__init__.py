"""Binary operations built from the lazy stream primitives."""

from .basic import length, part, join, insert_before, pad_left, pad_right, find
from .conversion import hex, bin, octal, to_octets, from_octets
from .text import decode_string, encode_string
