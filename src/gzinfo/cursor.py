# gzinfo/cursor.py
"""
Buffered sequential reader with exact backtracking.

The inflate engine reads compressed input in chunks and the decompressor
usually stops somewhere inside the last chunk. rewind() hands the unconsumed
suffix back so the trailer (and the next gzip member's header) is read from
the correct offset.
"""
from typing import BinaryIO, Optional

from .errors import IoError

DEFAULT_BUFSIZE = 16384


class ByteCursor:
    def __init__(self, fp: BinaryIO, bufsize: int = DEFAULT_BUFSIZE):
        if bufsize < 1:
            raise ValueError("bufsize must be positive")
        self._fp = fp
        self._bufsize = bufsize
        self._pending = bytearray()   # bytes read from fp (or rewound) but not delivered
        self._pos = 0                 # logical offset of the next byte to deliver
        self._rewindable = 0          # bytes from the last read() that may still be rewound
        self._last = b""
        self._eof = False

    def _fill(self, want: int) -> None:
        while len(self._pending) < want and not self._eof:
            try:
                data = self._fp.read(max(self._bufsize, want - len(self._pending)))
            except OSError as e:
                raise IoError(f"read failed: {e}", self._pos + len(self._pending)) from e
            if not data:
                self._eof = True
                break
            self._pending += data

    def read(self, n: int) -> bytes:
        """Return up to n bytes; fewer only at end of input."""
        if n < 0:
            raise ValueError("negative read size")
        if len(self._pending) < n:
            self._fill(n)
        out = bytes(self._pending[:n])
        del self._pending[:n]
        self._pos += len(out)
        self._last = out
        self._rewindable = len(out)
        return out

    def peek(self, n: int) -> bytes:
        if len(self._pending) < n:
            self._fill(n)
        return bytes(self._pending[:n])

    def peek_byte(self) -> Optional[int]:
        """Next byte without consuming it, or None at end of input."""
        if not self._pending:
            self._fill(1)
        return self._pending[0] if self._pending else None

    def rewind(self, n: int) -> None:
        """Give back the last n bytes delivered by the most recent read()."""
        if n < 0 or n > self._rewindable:
            raise ValueError(f"cannot rewind {n} bytes (only {self._rewindable} rewindable)")
        if n == 0:
            return
        self._pending[0:0] = self._last[self._rewindable - n:self._rewindable]
        self._pos -= n
        self._rewindable -= n

    def position(self) -> int:
        return self._pos

    def at_eof(self) -> bool:
        return self.peek_byte() is None

    def skip_to_end(self) -> int:
        """Consume everything left and return how many bytes that was."""
        skipped = len(self._pending)
        self._pos += skipped
        self._pending.clear()
        while not self._eof:
            try:
                data = self._fp.read(self._bufsize)
            except OSError as e:
                raise IoError(f"read failed: {e}", self._pos) from e
            if not data:
                self._eof = True
                break
            skipped += len(data)
            self._pos += len(data)
        self._last = b""
        self._rewindable = 0
        return skipped
