# gzinfo/detect.py
from .cursor import ByteCursor
from .errors import InvalidHeader, TruncatedHeader, UnsupportedMethod
from .types import MODE_RAW, MODE_ZLIB, MODE_GZIP

GZIP_MAGIC = b"\x1f\x8b"
METHOD_DEFLATE = 8


def classify(head: bytes) -> str:
    """
    Classify a stream from its first (up to 3) bytes.

    A raw stream could in theory start with an 8 in the low nibble (a non-final
    stored block with set fill bits), but encoders zero those bits, so zlib wins
    the tie. Empty input is classified raw and fails later as truncated.
    """
    if not head:
        return MODE_RAW
    first = head[0]
    if (first & 0x0F) == 8:
        return MODE_ZLIB
    if first == 0x1F:
        if len(head) >= 2 and head[1] != 0x8B:
            raise InvalidHeader("bad gzip magic", 0)
        if len(head) < 3:
            raise TruncatedHeader("input ends inside the gzip header", len(head))
        if head[2] != METHOD_DEFLATE:
            raise UnsupportedMethod(f"unsupported gzip compression method {head[2]}", 2)
        return MODE_GZIP
    return MODE_RAW


def detect_format(cursor: ByteCursor) -> str:
    """Peek at the stream head; nothing is consumed."""
    return classify(cursor.peek(3))
