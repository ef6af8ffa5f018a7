import io
import gzip
import zlib

import pytest

from gzinfo.cursor import ByteCursor
from gzinfo.detect import classify, detect_format
from gzinfo.errors import InvalidHeader, UnsupportedMethod, TruncatedHeader


def _raw(data: bytes) -> bytes:
    c = zlib.compressobj(6, zlib.DEFLATED, -zlib.MAX_WBITS)
    return c.compress(data) + c.flush()


def test_zlib_stream_detected():
    assert classify(zlib.compress(b"hello world")) == "zlib"


def test_gzip_stream_detected():
    assert classify(gzip.compress(b"hello world")) == "gzip"


def test_raw_stream_detected():
    assert classify(_raw(b"hello world")) == "raw"


def test_empty_input_is_raw():
    assert classify(b"") == "raw"


def test_bad_gzip_magic_is_an_error_not_a_fallback():
    with pytest.raises(InvalidHeader):
        classify(b"\x1f\x8c\x08")


def test_non_deflate_gzip_method_rejected():
    with pytest.raises(UnsupportedMethod):
        classify(b"\x1f\x8b\x07")


def test_unsupported_method_is_an_invalid_header():
    with pytest.raises(InvalidHeader):
        classify(b"\x1f\x8b\x00")


def test_gzip_magic_cut_short():
    with pytest.raises(TruncatedHeader):
        classify(b"\x1f\x8b")


def test_detection_leaves_bytes_for_the_header_parser():
    data = gzip.compress(b"abc")
    cur = ByteCursor(io.BytesIO(data))
    assert detect_format(cur) == "gzip"
    assert cur.position() == 0
    assert cur.read(3) == data[:3]
