# gzinfo/analyze.py
"""
Member aggregator: the decode loop for one input.

Each call builds its own cursor, decompressors and counters; nothing carries
over between files.
"""
import io
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional

from . import diag
from .cursor import ByteCursor
from .detect import GZIP_MAGIC, detect_format
from .errors import (
    IoError, InvalidHeader, UnsupportedMethod, TruncatedHeader,
    CorruptStream, TruncatedStream, TrailerMismatch,
)
from .header import read_gzip_header, read_zlib_header
from .heuristics import compression_ratio, classify_ratio
from .inflate import StreamingInflater, CHUNK, WINSIZE
from .integrity import IntegrityValidator, trailer_size
from .types import ArchiveReport, MemberRecord, MODES, MODE_GZIP, MODE_ZLIB


@dataclass(frozen=True)
class DecoderConfig:
    mode: Optional[str] = None          # None: autodetect from the first bytes
    chunk_size: int = CHUNK
    window_size: int = WINSIZE
    track_blocks: bool = True
    keep_access_points: bool = False
    stop_on_mismatch: bool = True
    debug: bool = False


def analyze_file(path: str, config: Optional[DecoderConfig] = None) -> ArchiveReport:
    try:
        fp = open(path, "rb")
    except OSError as e:
        raise IoError(f"could not open {path} for reading: {e.strerror or e}") from e
    with fp:
        return analyze_stream(fp, config, path=path)


def analyze_bytes(data: bytes, config: Optional[DecoderConfig] = None) -> ArchiveReport:
    return analyze_stream(io.BytesIO(data), config)


def analyze_stream(
    fp: BinaryIO,
    config: Optional[DecoderConfig] = None,
    path: Optional[str] = None,
    sink: Optional[Callable[[bytes], None]] = None,
) -> ArchiveReport:
    """
    Decode every member of `fp` and return the report.

    Raises IoError, and InvalidHeader / TruncatedHeader when the very first
    header is unusable. Anything that goes wrong after that is recorded on
    the report (truncated / error) together with the members decoded so far.
    `sink`, if given, receives each plaintext window in order.
    """
    cfg = config or DecoderConfig()
    cursor = ByteCursor(fp, cfg.chunk_size)
    mode = cfg.mode or detect_format(cursor)
    if mode not in MODES:
        raise ValueError(f"unknown mode {mode!r}; expected one of {', '.join(MODES)}")
    diag.debug(f"{path or '<stream>'}: mode={mode}{' (forced)' if cfg.mode else ''}", cfg.debug)

    report = ArchiveReport(path=path, mode=mode)
    if mode == MODE_GZIP:
        _scan_gzip(cursor, cfg, report, sink)
    else:
        _scan_single(cursor, cfg, report, sink)
    report.total_in = cursor.position()
    diag.debug(f"{path or '<stream>'}: {len(report.members)} member(s), valid={report.valid}, "
               f"truncated={report.truncated}, trailing={report.trailing_bytes}", cfg.debug)
    return report


def _scan_gzip(cursor: ByteCursor, cfg: DecoderConfig, report: ArchiveReport, sink) -> None:
    index = 0
    while not cursor.at_eof():
        offset = cursor.position()
        if index and not GZIP_MAGIC.startswith(cursor.peek(2)):
            report.trailing_bytes = cursor.skip_to_end()
            diag.debug(f"member {index}: no gzip magic at {offset}; "
                       f"{report.trailing_bytes} trailing bytes ignored", cfg.debug)
            return
        try:
            header = read_gzip_header(cursor)
        except TruncatedHeader as e:
            if index == 0:
                raise
            report.truncated = True
            report.error = f"TruncatedHeader: {e}"
            return
        except InvalidHeader as e:
            if index == 0:
                raise
            # Not another member: account for it as trailing data, like gzip does.
            report.trailing_bytes = (cursor.position() - offset) + cursor.skip_to_end()
            diag.debug(f"member {index}: {e}; {report.trailing_bytes} trailing bytes ignored", cfg.debug)
            return
        diag.debug(f"member {index}: header at {offset}, {header.size} bytes, flags=0x{header.flags:02x}",
                   cfg.debug)

        if not _decode_into(cursor, cfg, report, index, offset, header, sink):
            return
        index += 1


def _scan_single(cursor: ByteCursor, cfg: DecoderConfig, report: ArchiveReport, sink) -> None:
    offset = cursor.position()
    header = None
    if report.mode == MODE_ZLIB:
        header = read_zlib_header(cursor)
        if header.dict_id is not None:
            raise UnsupportedMethod(
                f"zlib stream needs preset dictionary 0x{header.dict_id:08x}", offset
            )
    if _decode_into(cursor, cfg, report, 0, offset, header, sink):
        report.trailing_bytes = cursor.skip_to_end()


def _decode_into(cursor, cfg, report, index, offset, header, sink) -> bool:
    """Decode one member onto the report. Returns False when scanning must stop."""
    try:
        record = _decode_member(cursor, cfg, report.mode, index, offset, header, sink)
    except (CorruptStream, TruncatedStream) as e:
        report.truncated = True
        report.error = f"{type(e).__name__}: {e}"
        diag.debug(f"member {index}: {report.error}", cfg.debug)
        return False

    report.members.append(record)
    if record.ok:
        return True
    mismatch = TrailerMismatch(index, record.crc_ok, record.isize_ok, cursor.position())
    diag.debug(str(mismatch), cfg.debug)
    if report.error is None:
        report.error = f"TrailerMismatch: {mismatch}"
    return not cfg.stop_on_mismatch


def _decode_member(cursor, cfg, mode, index, offset, header, sink) -> MemberRecord:
    validator = IntegrityValidator(mode)
    inflater = StreamingInflater(
        cursor,
        validator,
        chunk_size=cfg.chunk_size,
        window_size=cfg.window_size,
        track_blocks=cfg.track_blocks,
        keep_access_points=cfg.keep_access_points,
        sink=sink,
        debug=cfg.debug,
    )
    result = inflater.run()

    size = trailer_size(mode)
    trailer = cursor.read(size)
    if len(trailer) != size:
        raise TruncatedStream(f"input ends inside the {mode} trailer", cursor.position())
    check = validator.check(trailer)

    ratio = compression_ratio(result.compressed_size, result.uncompressed_size)
    bucket, levels = classify_ratio(ratio)
    diag.debug(f"member {index}: {result.compressed_size} -> {result.uncompressed_size} bytes, "
               f"{result.block_count} block(s), check={check.check_kind} ok={check.crc_ok}", cfg.debug)

    return MemberRecord(
        index=index,
        offset=offset,
        header=header,
        compressed_size=result.compressed_size,
        uncompressed_size=result.uncompressed_size,
        stored_crc32=check.stored_check if check.check_kind == "crc32" else None,
        computed_crc32=validator.crc32,
        crc_ok=check.crc_ok,
        isize_ok=check.isize_ok,
        block_count=result.block_count,
        compression_ratio=ratio,
        estimated_level_range=levels,
        ratio_bucket=bucket,
        check_kind=check.check_kind,
        stored_check=check.stored_check,
        computed_check=check.computed_check,
        stored_isize=check.stored_isize,
        block_types=result.block_types,
        access_points=tuple(result.access_points),
    )
