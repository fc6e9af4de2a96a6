"""Tests for text encoding and decoding."""

import pytest

from lazybin import encode_string, decode_string, read_bytes
from lazybin.core.model import BinError, ErrorKind
from lazybin.io.local import BytesValue
from lazybin.ops.text import resolve_encoding


class TestEncodeString:
    """Test encode_string()."""

    def test_default_utf8(self):
        assert read_bytes(encode_string("hé")) == b"h\xc3\xa9"

    def test_named_encoding(self):
        assert read_bytes(encode_string("hello", "CP037")) == b"\x88\x85\x93\x93\x96"
        assert read_bytes(encode_string("hé", "ISO-8859-1")) == b"h\xe9"

    def test_absent_text(self):
        assert encode_string(None) is None

    def test_unknown_encoding(self):
        with pytest.raises(BinError) as exc:
            encode_string("hello", "no-such-charset")
        assert exc.value.kind is ErrorKind.UNKNOWN_ENCODING

    def test_unencodable_text(self):
        with pytest.raises(BinError) as exc:
            encode_string("hé", "ASCII")
        assert exc.value.kind is ErrorKind.CONVERSION_ERROR


class TestDecodeString:
    """Test decode_string()."""

    def test_default_utf8(self):
        assert decode_string(BytesValue(b"h\xc3\xa9")) == "hé"

    @pytest.mark.parametrize("encoding", ["UTF-8", "UTF-16", "UTF-16BE", "CP037", "ISO-8859-1", "ascii"])
    def test_round_trip(self, encoding):
        text = "ohhaithere"
        assert decode_string(encode_string(text, encoding), encoding) == text

    def test_region(self):
        value = BytesValue(b"0123456789")
        assert decode_string(value, None, 2, 3) == "234"
        assert decode_string(value, None, 7) == "789"
        assert decode_string(value, size=4) == "0123"

    def test_region_past_end(self):
        with pytest.raises(BinError) as exc:
            decode_string(BytesValue(b"0123456789"), "UTF-8", 8, 5)
        assert exc.value.kind is ErrorKind.INDEX_OUT_OF_RANGE

    def test_negative_region(self):
        with pytest.raises(BinError) as exc:
            decode_string(BytesValue(b"0123"), None, -1)
        assert exc.value.kind is ErrorKind.INDEX_OUT_OF_RANGE

        with pytest.raises(BinError) as exc:
            decode_string(BytesValue(b"0123"), None, 0, -1)
        assert exc.value.kind is ErrorKind.NEGATIVE_SIZE

    def test_unknown_encoding(self):
        with pytest.raises(BinError) as exc:
            decode_string(BytesValue(b"0123"), "no-such-charset")
        assert exc.value.kind is ErrorKind.UNKNOWN_ENCODING

    def test_invalid_bytes(self):
        with pytest.raises(BinError) as exc:
            decode_string(BytesValue(b"\xff\xfe\xfd"), "UTF-8")
        assert exc.value.kind is ErrorKind.CONVERSION_ERROR

    def test_absent_value(self):
        assert decode_string(None) is None


class TestResolveEncoding:
    """Test encoding lookup."""

    def test_aliases(self):
        assert resolve_encoding(None).name == "utf-8"
        assert resolve_encoding("utf8").name == "utf-8"
        assert resolve_encoding("CP037").name == "cp037"

    def test_binary_codecs_refused(self):
        with pytest.raises(BinError) as exc:
            resolve_encoding("base64")
        assert exc.value.kind is ErrorKind.UNKNOWN_ENCODING
