#!/usr/bin/env python3
"""
gzinfo: inspect gzip / zlib / raw DEFLATE files.

Examples:
  gzinfo file.gz                   # summary (format, sizes, blocks, members)
  gzinfo -v file.gz                # per-member detail incl. header metadata
  gzinfo -l a.gz b.gz              # gzip -l style listing
  gzinfo -t file.gz; echo $?       # integrity test only
  gzinfo --json file.gz            # structured report
  gzinfo --csv members.csv *.gz    # one row per member across files

Exit status: 0 all files valid, 1 some file unreadable or not a
DEFLATE container, 2 some file decoded but failed integrity (truncated,
corrupt, trailer mismatch).
"""
import argparse
import sys
from typing import List, Optional

from . import diag
from .analyze import DecoderConfig, analyze_file, analyze_stream
from .errors import GzinfoError
from .inflate import CHUNK, WINSIZE
from .report import (
    render_list, render_summary, render_verbose, reports_to_dataframe, reports_to_json,
)
from .types import ArchiveReport, MODES

EXIT_OK = 0
EXIT_UNREADABLE = 1
EXIT_INVALID = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="gzinfo",
        description="Decode and analyze raw DEFLATE, zlib and (multi-member) gzip streams.",
    )
    p.add_argument("files", nargs="+", metavar="FILE", help="Input file(s); '-' reads stdin.")

    out = p.add_mutually_exclusive_group()
    out.add_argument("-l", "--list", action="store_true", help="gzip -l style listing.")
    out.add_argument("-t", "--test", action="store_true", help="Test integrity; report via exit status.")
    out.add_argument("--json", action="store_true", help="Print structured report(s) as JSON.")
    p.add_argument("-v", "--verbose", action="store_true", help="Per-member detail.")
    p.add_argument("--csv", metavar="PATH", default=None, help="Also write a per-member CSV table.")

    p.add_argument("--mode", choices=MODES, default=None, help="Force the container format (default: detect).")
    p.add_argument("--chunk-size", type=int, default=CHUNK, help=f"Compressed bytes per read (default {CHUNK}).")
    p.add_argument("--window-size", type=int, default=WINSIZE,
                   help=f"Max plaintext bytes per inflate step (default {WINSIZE}).")
    p.add_argument("--no-blocks", dest="track_blocks", action="store_false", default=True,
                   help="Skip deflate block tracking (faster; block counts become n/a).")
    p.add_argument("--access-points", action="store_true", default=False,
                   help="Record non-final block boundaries as access points.")
    p.add_argument("--keep-going", action="store_true", default=False,
                   help="Keep scanning members after a trailer mismatch.")
    p.add_argument("--debug", action="store_true", help="Debug output on stderr.")

    args = p.parse_args(argv)
    if args.chunk_size < 1 or args.window_size < 1:
        p.error("--chunk-size and --window-size must be positive")
    return args


def build_config(args: argparse.Namespace) -> DecoderConfig:
    return DecoderConfig(
        mode=args.mode,
        chunk_size=int(args.chunk_size),
        window_size=int(args.window_size),
        track_blocks=bool(args.track_blocks),
        keep_access_points=bool(args.access_points),
        stop_on_mismatch=not args.keep_going,
        debug=bool(args.debug),
    )


def _analyze(path: str, cfg: DecoderConfig) -> ArchiveReport:
    if path == "-":
        return analyze_stream(sys.stdin.buffer, cfg, path=None)
    return analyze_file(path, cfg)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    cfg = build_config(args)

    status = EXIT_OK
    reports: List[ArchiveReport] = []
    for path in args.files:
        try:
            report = _analyze(path, cfg)
        except GzinfoError as e:
            print(f"gzinfo: {path}: {e}", file=sys.stderr)
            status = max(status, EXIT_UNREADABLE)
            continue
        reports.append(report)
        if report.trailing_bytes and not args.json:
            diag.warn(f"{path}: {report.trailing_bytes} trailing bytes ignored")
        if not report.valid:
            status = EXIT_INVALID
            if report.error and not args.json:
                print(f"gzinfo: {path}: {report.error}", file=sys.stderr)

        if args.test:
            if args.verbose:
                print(f"{path}: {'OK' if report.valid else 'FAILED'}")
        elif not args.list and not args.json:
            print(render_verbose(report) if args.verbose else render_summary(report))
            print()

    if args.list and reports:
        print(render_list(reports))
    if args.json and reports:
        print(reports_to_json(reports))
    if args.csv:
        df = reports_to_dataframe(reports)
        df.to_csv(args.csv, index=False)
        if args.verbose:
            print(f"[gzinfo] Wrote {len(df)} member row(s) to {args.csv}", file=sys.stderr)
    return status


if __name__ == "__main__":
    sys.exit(main())
