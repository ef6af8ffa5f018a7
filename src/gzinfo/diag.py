# gzinfo/diag.py
# Tagged diagnostics on stderr; stdout is reserved for reports.
import sys


def debug(msg: str, enabled: bool = True) -> None:
    if enabled:
        print(f"[gzinfo][DEBUG] {msg}", file=sys.stderr, flush=True)


def warn(msg: str) -> None:
    print(f"[gzinfo][WARN] {msg}", file=sys.stderr, flush=True)
