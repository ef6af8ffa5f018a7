# gzinfo/errors.py
"""
Error taxonomy for the decode pipeline.

Hard failures (IoError, header errors on the first member) propagate out of
analyze_stream(). Stream-level failures (CorruptStream, TruncatedStream) and
trailer mismatches are caught by the member loop and recorded on the report.
"""
from typing import Optional


class GzinfoError(Exception):
    """Base class; `offset` is the input byte offset where the problem was seen."""

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.offset = offset

    def __str__(self):
        msg = super().__str__()
        if self.offset is not None:
            return f"{msg} (at byte {self.offset})"
        return msg


class IoError(GzinfoError):
    pass


class InvalidHeader(GzinfoError):
    pass


class UnsupportedMethod(InvalidHeader):
    pass


class TruncatedHeader(GzinfoError):
    pass


class CorruptStream(GzinfoError):
    pass


class TruncatedStream(GzinfoError):
    pass


class TrailerMismatch(GzinfoError):
    """Recorded on the report, never raised out of the member loop."""

    def __init__(self, member_index: int, crc_ok: Optional[bool], isize_ok: Optional[bool],
                 offset: Optional[int] = None):
        parts = []
        if crc_ok is False:
            parts.append("checksum")
        if isize_ok is False:
            parts.append("size")
        super().__init__(f"member {member_index}: trailer {' and '.join(parts)} mismatch", offset)
        self.member_index = member_index
        self.crc_ok = crc_ok
        self.isize_ok = isize_ok
