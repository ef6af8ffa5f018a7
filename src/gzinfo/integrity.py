# gzinfo/integrity.py
import struct
import zlib
from dataclasses import dataclass
from typing import Optional

from .types import MODE_GZIP, MODE_ZLIB

GZIP_TRAILER = struct.Struct("<II")   # CRC-32, ISIZE
ZLIB_TRAILER = struct.Struct(">I")    # Adler-32


def trailer_size(mode: str) -> int:
    if mode == MODE_GZIP:
        return GZIP_TRAILER.size
    if mode == MODE_ZLIB:
        return ZLIB_TRAILER.size
    return 0


@dataclass(frozen=True)
class TrailerCheck:
    check_kind: str
    stored_check: Optional[int]
    computed_check: Optional[int]
    stored_isize: Optional[int]
    crc_ok: Optional[bool]
    isize_ok: Optional[bool]


class IntegrityValidator:
    """
    Running checksums over one member's plaintext, in emission order.

    CRC-32 is always kept (it is what gzip stores and what the report shows);
    Adler-32 only for zlib streams.
    """

    def __init__(self, mode: str):
        self.mode = mode
        self.crc32 = 0
        self.adler32 = 1
        self.total_out = 0

    def update(self, data: bytes) -> None:
        if not data:
            return
        self.crc32 = zlib.crc32(data, self.crc32)
        if self.mode == MODE_ZLIB:
            self.adler32 = zlib.adler32(data, self.adler32)
        self.total_out += len(data)

    def check(self, trailer: bytes) -> TrailerCheck:
        """Compare against the raw trailer bytes (must be exactly trailer_size(mode) long)."""
        if self.mode == MODE_GZIP:
            stored_crc, stored_isize = GZIP_TRAILER.unpack(trailer)
            return TrailerCheck(
                check_kind="crc32",
                stored_check=stored_crc,
                computed_check=self.crc32,
                stored_isize=stored_isize,
                crc_ok=stored_crc == self.crc32,
                # ISIZE is the length modulo 2^32
                isize_ok=stored_isize == (self.total_out & 0xFFFFFFFF),
            )
        if self.mode == MODE_ZLIB:
            (stored_adler,) = ZLIB_TRAILER.unpack(trailer)
            return TrailerCheck(
                check_kind="adler32",
                stored_check=stored_adler,
                computed_check=self.adler32,
                stored_isize=None,
                crc_ok=stored_adler == self.adler32,
                isize_ok=None,
            )
        return TrailerCheck("none", None, None, None, None, None)
