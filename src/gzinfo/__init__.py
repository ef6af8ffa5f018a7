from .analyze import DecoderConfig, analyze_file, analyze_stream, analyze_bytes
from .errors import (
    GzinfoError, IoError, InvalidHeader, UnsupportedMethod, TruncatedHeader,
    CorruptStream, TruncatedStream, TrailerMismatch,
)
from .types import ArchiveReport, MemberRecord, MemberHeader, ZlibHeader, BlockEvent

__version__ = "0.1.0"
