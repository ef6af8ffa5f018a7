# gzinfo/header.py
"""
Container header parsers.

gzip member header (RFC 1952, section 2.3):
  0  2  magic 0x1f 0x8b
  2  1  CM (8 = deflate)
  3  1  FLG
  4  4  MTIME (little endian)
  8  1  XFL
  9  1  OS
  then, in this order and only if flagged:
  FEXTRA   2-byte LE length + that many bytes
  FNAME    NUL-terminated original file name
  FCOMMENT NUL-terminated comment
  FHCRC    2-byte CRC16 of the header (kept, not verified)

zlib header (RFC 1950): CMF, FLG, optional 4-byte DICTID.
"""
import struct

from .cursor import ByteCursor
from .detect import GZIP_MAGIC, METHOD_DEFLATE
from .errors import InvalidHeader, TruncatedHeader, UnsupportedMethod
from .types import (
    MemberHeader, ZlibHeader,
    FHCRC, FEXTRA, FNAME, FCOMMENT, FRESERVED,
)

_FIXED = struct.Struct("<2sBBIBB")
ZLIB_FDICT = 0x20


def _read_exact(cursor: ByteCursor, n: int, what: str) -> bytes:
    data = cursor.read(n)
    if len(data) != n:
        raise TruncatedHeader(f"input ends inside {what}", cursor.position())
    return data


def _read_cstring(cursor: ByteCursor, what: str) -> bytes:
    # No length bound: grow until the NUL terminator shows up.
    buf = bytearray()
    while True:
        b = cursor.read(1)
        if not b:
            raise TruncatedHeader(f"input ends inside {what}", cursor.position())
        if b == b"\x00":
            return bytes(buf)
        buf += b


def read_gzip_header(cursor: ByteCursor) -> MemberHeader:
    start = cursor.position()
    magic, method, flags, mtime, xflags, os_byte = _FIXED.unpack(
        _read_exact(cursor, _FIXED.size, "gzip header")
    )
    if magic != GZIP_MAGIC:
        raise InvalidHeader("bad gzip magic", start)
    if method != METHOD_DEFLATE:
        raise UnsupportedMethod(f"unsupported gzip compression method {method}", start + 2)
    if flags & FRESERVED:
        raise InvalidHeader(f"reserved gzip flag bits set (0x{flags:02x})", start + 3)

    extra = filename = comment = header_crc = None
    if flags & FEXTRA:
        (xlen,) = struct.unpack("<H", _read_exact(cursor, 2, "gzip extra length"))
        extra = _read_exact(cursor, xlen, "gzip extra field")
    if flags & FNAME:
        filename = _read_cstring(cursor, "gzip file name")
    if flags & FCOMMENT:
        comment = _read_cstring(cursor, "gzip comment")
    if flags & FHCRC:
        (header_crc,) = struct.unpack("<H", _read_exact(cursor, 2, "gzip header crc"))

    return MemberHeader(
        method=method,
        flags=flags,
        mtime=mtime,
        xflags=xflags,
        os=os_byte,
        extra=extra,
        filename=filename,
        comment=comment,
        header_crc=header_crc,
        offset=start,
        size=cursor.position() - start,
    )


def read_zlib_header(cursor: ByteCursor) -> ZlibHeader:
    start = cursor.position()
    cmf, flg = _read_exact(cursor, 2, "zlib header")
    if (cmf & 0x0F) != METHOD_DEFLATE:
        raise UnsupportedMethod(f"unsupported zlib compression method {cmf & 0x0F}", start)
    if (cmf >> 4) > 7:
        raise InvalidHeader(f"invalid zlib window size (CINFO={cmf >> 4})", start)
    if ((cmf << 8) | flg) % 31 != 0:
        raise InvalidHeader("zlib header check bits do not match", start)
    dict_id = None
    if flg & ZLIB_FDICT:
        (dict_id,) = struct.unpack(">I", _read_exact(cursor, 4, "zlib dictionary id"))
    return ZlibHeader(cmf=cmf, flg=flg, dict_id=dict_id, offset=start,
                      size=cursor.position() - start)
