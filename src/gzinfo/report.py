# gzinfo/report.py
"""
Report builder: turns ArchiveReport values into documents, tables and text.
Nothing in the decode path imports this module.
"""
import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from .types import ArchiveReport, MemberRecord, MemberHeader, ZlibHeader

SIZE_SUFFIXES = ["B", "KB", "MB", "GB", "TB"]

MEMBER_COLUMNS = [
    "path", "mode", "member", "offset", "name",
    "compressed_size", "uncompressed_size", "percent_saved",
    "stored_crc32", "computed_crc32", "crc_ok", "isize_ok",
    "block_count", "compression_ratio", "ratio_bucket",
    "level_estimate_min", "level_estimate_max",
]
_UNSIGNED_COLUMNS = ["offset", "compressed_size", "uncompressed_size"]


def human_size(nbytes: int) -> str:
    """1024-based size with two decimals, e.g. '1.50 KB'."""
    i = 0
    value = float(nbytes)
    while value >= 1024 and i < len(SIZE_SUFFIXES) - 1:
        value /= 1024.0
        i += 1
    return f"{value:.2f} {SIZE_SUFFIXES[i]}"


def percent_saved(compressed: int, uncompressed: int) -> float:
    if uncompressed == 0:
        return 0.0
    return 100.0 * (1.0 - compressed / uncompressed)


def fallback_name(path: Optional[str]) -> str:
    if not path:
        return "<stdin>"
    base = os.path.basename(path)
    for ext, repl in ((".tgz", ".tar"), (".gz", ""), (".z", ""), (".zz", ""), (".zlib", "")):
        if base.lower().endswith(ext) and len(base) > len(ext):
            return base[: -len(ext)] + repl
    return base


def member_name(report: ArchiveReport, member: MemberRecord) -> str:
    return member.name or fallback_name(report.path)


def _fmt_ok(flag: Optional[bool]) -> str:
    if flag is None:
        return "n/a"
    return "ok" if flag else "MISMATCH"


def _fmt_levels(member: MemberRecord) -> str:
    lo, hi = member.estimated_level_range
    return f"{lo}-{hi} (est.)"


# ---------- structured ----------

def report_to_dict(report: ArchiveReport) -> Dict[str, Any]:
    return report.to_dict()


def reports_to_json(reports: Iterable[ArchiveReport], indent: int = 2) -> str:
    docs = [report_to_dict(r) for r in reports]
    return json.dumps(docs[0] if len(docs) == 1 else docs, indent=indent)


def list_rows(report: ArchiveReport) -> List[Dict[str, Any]]:
    """One gzip -l style row per member."""
    rows = []
    for m in report.members:
        rows.append({
            "compressed_size": m.compressed_size,
            "uncompressed_size": m.uncompressed_size,
            "percent_saved": percent_saved(m.compressed_size, m.uncompressed_size),
            "name": member_name(report, m),
        })
    return rows


def reports_to_dataframe(reports: Iterable[ArchiveReport]) -> pd.DataFrame:
    """Flatten members of all reports into one table (one row per member)."""
    rows = []
    for r in reports:
        for m in r.members:
            lo, hi = m.estimated_level_range
            rows.append({
                "path": r.path,
                "mode": r.mode,
                "member": m.index,
                "offset": m.offset,
                "name": member_name(r, m),
                "compressed_size": m.compressed_size,
                "uncompressed_size": m.uncompressed_size,
                "percent_saved": percent_saved(m.compressed_size, m.uncompressed_size),
                "stored_crc32": m.stored_crc32,
                "computed_crc32": m.computed_crc32,
                "crc_ok": m.crc_ok,
                "isize_ok": m.isize_ok,
                "block_count": m.block_count,
                "compression_ratio": m.compression_ratio,
                "ratio_bucket": m.ratio_bucket,
                "level_estimate_min": lo,
                "level_estimate_max": hi,
            })
    df = pd.DataFrame(rows, columns=MEMBER_COLUMNS)
    if not df.empty:
        df = df.astype({c: np.uint64 for c in _UNSIGNED_COLUMNS})
    return df


# ---------- text ----------

def render_list(reports: Iterable[ArchiveReport]) -> str:
    lines = [f"{'compressed':>19} {'uncompressed':>19} {'ratio':>6} uncompressed_name"]
    total_c = total_u = 0
    count = 0
    for r in reports:
        for row in list_rows(r):
            lines.append(f"{row['compressed_size']:>19} {row['uncompressed_size']:>19} "
                         f"{row['percent_saved']:>5.1f}% {row['name']}")
            total_c += row["compressed_size"]
            total_u += row["uncompressed_size"]
            count += 1
    if count > 1:
        lines.append(f"{total_c:>19} {total_u:>19} {percent_saved(total_c, total_u):>5.1f}% (totals)")
    return "\n".join(lines)


def render_summary(report: ArchiveReport) -> str:
    """The classic gzinfo block for one file."""
    header_present = any(m.header is not None for m in report.members)
    blocks = report.block_count
    lines = [
        f"File: {report.path or '<stdin>'}",
        "Gzip File Information:",
        f"Format: {report.mode}",
        f"Header present: {'Yes' if header_present else 'No'}",
        f"Compressed Size: {human_size(report.total_in)}",
        f"Uncompressed Size: {human_size(report.total_out)}",
        f"Number of Deflate Blocks: {blocks if blocks is not None else 'n/a'}",
        f"Number of GZIP Members: {len(report.members)}",
        f"Status: {_status(report)}",
    ]
    if report.trailing_bytes:
        lines.append(f"Trailing bytes ignored: {report.trailing_bytes}")
    return "\n".join(lines)


def render_verbose(report: ArchiveReport) -> str:
    lines = [render_summary(report)]
    for m in report.members:
        lines.append("")
        lines.append(f"Member {m.index} @ {m.offset}:")
        lines.extend(f"  {line}" for line in _header_lines(m.header))
        lines.append(f"  Compressed: {m.compressed_size} ({human_size(m.compressed_size)})")
        lines.append(f"  Uncompressed: {m.uncompressed_size} ({human_size(m.uncompressed_size)})")
        if m.check_kind == "crc32":
            lines.append(f"  CRC-32: stored {m.stored_crc32:08x}, computed {m.computed_crc32:08x} "
                         f"[{_fmt_ok(m.crc_ok)}]")
            lines.append(f"  ISIZE: stored {m.stored_isize} [{_fmt_ok(m.isize_ok)}]")
        elif m.check_kind == "adler32":
            lines.append(f"  Adler-32: stored {m.stored_check:08x}, computed {m.computed_check:08x} "
                         f"[{_fmt_ok(m.crc_ok)}]")
            lines.append(f"  CRC-32 (computed): {m.computed_crc32:08x}")
        else:
            lines.append(f"  CRC-32 (computed, no trailer): {m.computed_crc32:08x}")
        if m.block_count is not None:
            kinds = ", ".join(f"{k} {v}" for k, v in m.block_types.items() if v)
            lines.append(f"  Deflate blocks: {m.block_count} ({kinds})")
        for ap in m.access_points:
            lines.append(f"    access point: bit {ap.in_bits} -> out {ap.out_offset}")
        lines.append(f"  Ratio: {m.compression_ratio:.3f} ({m.ratio_bucket}), "
                     f"level {_fmt_levels(m)}")
    if report.error:
        lines.append("")
        lines.append(f"Error: {report.error}")
    return "\n".join(lines)


def _status(report: ArchiveReport) -> str:
    if report.valid:
        return "OK"
    if report.truncated:
        return "TRUNCATED"
    return "INVALID"


def _header_lines(header) -> List[str]:
    if isinstance(header, MemberHeader):
        out = [f"Flags: 0x{header.flags:02x}, XFL: {header.xflags}, OS: {header.os_name}"]
        if header.mtime:
            ts = datetime.fromtimestamp(header.mtime, timezone.utc)
            out.append(f"Modified: {ts.isoformat()}")
        else:
            out.append("Modified: n/a")
        if header.filename is not None:
            out.append(f"Name: {header.filename_text}")
        if header.comment is not None:
            out.append(f"Comment: {header.comment_text}")
        if header.extra is not None:
            out.append(f"Extra field: {len(header.extra)} bytes")
        if header.header_crc is not None:
            out.append(f"Header CRC-16: {header.header_crc:04x} (not verified)")
        return out
    if isinstance(header, ZlibHeader):
        return [f"zlib window bits: {header.window_bits}, FLEVEL: {header.level_hint}"]
    return []
