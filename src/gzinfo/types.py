# gzinfo/types.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Dict, Any, Union

MODE_RAW = "raw"
MODE_ZLIB = "zlib"
MODE_GZIP = "gzip"
MODES = (MODE_RAW, MODE_ZLIB, MODE_GZIP)

# gzip flag bits (RFC 1952)
FTEXT = 0x01
FHCRC = 0x02
FEXTRA = 0x04
FNAME = 0x08
FCOMMENT = 0x10
FRESERVED = 0xE0

BLOCK_STORED = "stored"
BLOCK_FIXED = "fixed"
BLOCK_DYNAMIC = "dynamic"
BLOCK_TYPES = (BLOCK_STORED, BLOCK_FIXED, BLOCK_DYNAMIC)

OS_NAMES = {
    0: "FAT", 1: "Amiga", 2: "VMS", 3: "Unix", 4: "VM/CMS", 5: "Atari TOS",
    6: "HPFS", 7: "Macintosh", 8: "Z-System", 9: "CP/M", 10: "TOPS-20",
    11: "NTFS", 12: "QDOS", 13: "Acorn RISCOS", 255: "unknown",
}


def _text(raw: Optional[bytes]) -> Optional[str]:
    # Header strings carry no declared encoding; decode for display only.
    if raw is None:
        return None
    return raw.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class MemberHeader:
    method: int
    flags: int
    mtime: int
    xflags: int
    os: int
    extra: Optional[bytes] = None
    filename: Optional[bytes] = None
    comment: Optional[bytes] = None
    header_crc: Optional[int] = None
    offset: int = 0   # offset of the magic bytes in the input
    size: int = 10    # header length in bytes

    @property
    def filename_text(self) -> Optional[str]:
        return _text(self.filename)

    @property
    def comment_text(self) -> Optional[str]:
        return _text(self.comment)

    @property
    def os_name(self) -> str:
        return OS_NAMES.get(self.os, f"unknown ({self.os})")

    def to_dict(self) -> dict:
        return {
            "kind": MODE_GZIP,
            "method": self.method,
            "flags": self.flags,
            "mtime": self.mtime,
            "xflags": self.xflags,
            "os": self.os,
            "os_name": self.os_name,
            "extra": self.extra.hex() if self.extra is not None else None,
            "filename": self.filename_text,
            "comment": self.comment_text,
            "header_crc": self.header_crc,
            "offset": self.offset,
            "size": self.size,
        }


@dataclass(frozen=True)
class ZlibHeader:
    cmf: int
    flg: int
    dict_id: Optional[int] = None
    offset: int = 0
    size: int = 2

    @property
    def window_bits(self) -> int:
        return (self.cmf >> 4) + 8

    @property
    def level_hint(self) -> int:
        # FLEVEL: 0 fastest, 1 fast, 2 default, 3 maximum
        return (self.flg >> 6) & 0x03

    def to_dict(self) -> dict:
        return {
            "kind": MODE_ZLIB,
            "cmf": self.cmf,
            "flg": self.flg,
            "window_bits": self.window_bits,
            "level_hint": self.level_hint,
            "dict_id": self.dict_id,
            "offset": self.offset,
            "size": self.size,
        }


@dataclass(frozen=True)
class BlockEvent:
    """A completed DEFLATE block. Non-final blocks double as access points."""
    index: int
    block_type: str
    final: bool
    in_bits: int      # bit offset into the member's deflate data at block end
    out_offset: int   # plaintext bytes produced by the member through block end

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "block_type": self.block_type,
            "final": self.final,
            "in_bits": self.in_bits,
            "out_offset": self.out_offset,
        }


@dataclass(frozen=True)
class MemberRecord:
    index: int
    offset: int
    header: Optional[Union[MemberHeader, ZlibHeader]]
    compressed_size: int
    uncompressed_size: int
    stored_crc32: Optional[int]
    computed_crc32: int
    crc_ok: Optional[bool]        # None: no stored checksum to compare against
    isize_ok: Optional[bool]      # None: container has no ISIZE field
    block_count: Optional[int]    # None: block tracking disabled
    compression_ratio: float
    estimated_level_range: Tuple[int, int]
    ratio_bucket: str = ""
    check_kind: str = "none"      # crc32 | adler32 | none
    stored_check: Optional[int] = None
    computed_check: Optional[int] = None
    stored_isize: Optional[int] = None
    block_types: Dict[str, int] = field(default_factory=dict)
    access_points: Tuple[BlockEvent, ...] = ()

    @property
    def ok(self) -> bool:
        return self.crc_ok is not False and self.isize_ok is not False

    @property
    def name(self) -> Optional[str]:
        if isinstance(self.header, MemberHeader):
            return self.header.filename_text
        return None

    def to_dict(self) -> dict:
        lo, hi = self.estimated_level_range
        return {
            "index": self.index,
            "offset": self.offset,
            "header": self.header.to_dict() if self.header is not None else None,
            "compressed_size": self.compressed_size,
            "uncompressed_size": self.uncompressed_size,
            "stored_crc32": self.stored_crc32,
            "computed_crc32": self.computed_crc32,
            "crc_ok": self.crc_ok,
            "isize_ok": self.isize_ok,
            "check_kind": self.check_kind,
            "stored_check": self.stored_check,
            "computed_check": self.computed_check,
            "stored_isize": self.stored_isize,
            "block_count": self.block_count,
            "block_types": dict(self.block_types),
            "access_points": [ap.to_dict() for ap in self.access_points],
            "compression_ratio": self.compression_ratio,
            "ratio_bucket": self.ratio_bucket,
            "estimated_level_range": {"min": lo, "max": hi, "estimate": True},
        }


@dataclass
class ArchiveReport:
    path: Optional[str]
    mode: Optional[str] = None
    members: List[MemberRecord] = field(default_factory=list)
    truncated: bool = False
    error: Optional[str] = None
    trailing_bytes: int = 0
    total_in: int = 0

    @property
    def valid(self) -> bool:
        return (
            len(self.members) > 0
            and not self.truncated
            and self.error is None
            and all(m.ok for m in self.members)
        )

    @property
    def total_out(self) -> int:
        return sum(m.uncompressed_size for m in self.members)

    @property
    def block_count(self) -> Optional[int]:
        counts = [m.block_count for m in self.members]
        if not counts or any(c is None for c in counts):
            return None
        return sum(counts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "mode": self.mode,
            "valid": self.valid,
            "truncated": self.truncated,
            "error": self.error,
            "total_in": self.total_in,
            "total_out": self.total_out,
            "trailing_bytes": self.trailing_bytes,
            "member_count": len(self.members),
            "block_count": self.block_count,
            "members": [m.to_dict() for m in self.members],
        }
