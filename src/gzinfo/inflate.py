# gzinfo/inflate.py
"""
Streaming inflate engine.

Drives zlib over chunked input with raw-deflate semantics (container framing
is parsed by header.py / integrity.py), hands every bounded output window to
the IntegrityValidator, and runs the BlockTracker over the same compressed
chunks for block-boundary events. At end of stream the bytes zlib did not
consume are rewound onto the cursor.
"""
import zlib
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .cursor import ByteCursor
from .deflate_blocks import BlockTracker
from . import diag
from .errors import CorruptStream, TruncatedStream
from .integrity import IntegrityValidator
from .types import BlockEvent

CHUNK = 16384       # compressed input per read
WINSIZE = 32768     # max plaintext held at once


@dataclass
class InflateResult:
    compressed_size: int
    uncompressed_size: int
    block_count: Optional[int] = None
    block_types: Dict[str, int] = field(default_factory=dict)
    access_points: List[BlockEvent] = field(default_factory=list)


class StreamingInflater:
    def __init__(
        self,
        cursor: ByteCursor,
        validator: IntegrityValidator,
        chunk_size: int = CHUNK,
        window_size: int = WINSIZE,
        track_blocks: bool = True,
        keep_access_points: bool = False,
        sink: Optional[Callable[[bytes], None]] = None,
        debug: bool = False,
    ):
        if chunk_size < 1 or window_size < 1:
            raise ValueError("chunk_size and window_size must be positive")
        self._cursor = cursor
        self._validator = validator
        self._chunk_size = chunk_size
        self._window_size = window_size
        self._track_blocks = track_blocks
        self._keep_access_points = keep_access_points
        self._sink = sink
        self._debug = debug

    def _inflate(self, d, data: bytes) -> bytes:
        try:
            return d.decompress(data, self._window_size)
        except zlib.error as e:
            raise CorruptStream(f"invalid deflate data: {e}", self._cursor.position()) from e

    def _emit(self, window: bytes) -> None:
        if not window:
            return
        self._validator.update(window)
        if self._sink is not None:
            self._sink(window)

    def run(self) -> InflateResult:
        cursor = self._cursor
        start = cursor.position()
        out_start = self._validator.total_out
        d = zlib.decompressobj(-zlib.MAX_WBITS)
        tracker = BlockTracker(start) if self._track_blocks else None
        points: List[BlockEvent] = []

        while not d.eof:
            if d.unconsumed_tail:
                window = self._inflate(d, d.unconsumed_tail)
            else:
                chunk = cursor.read(self._chunk_size)
                if not chunk:
                    # zlib may still owe output for input it already took
                    window = self._inflate(d, b"")
                    if not window and not d.eof:
                        raise TruncatedStream("compressed data ended before end of stream",
                                              cursor.position())
                else:
                    window = self._inflate(d, chunk)
                    if tracker is not None:
                        for event in tracker.feed(chunk):
                            self._on_block(event, points)
            self._emit(window)

        cursor.rewind(len(d.unused_data))
        compressed_size = cursor.position() - start

        result = InflateResult(
            compressed_size=compressed_size,
            uncompressed_size=self._validator.total_out - out_start,
            access_points=points,
        )
        if tracker is not None:
            if not tracker.done or tracker.bytes_consumed != compressed_size:
                # zlib is authoritative for sizes; the walker only contributes block stats
                diag.debug(f"block walker disagrees with zlib at {start}: walker "
                           f"{tracker.bytes_consumed} bytes (done={tracker.done}), zlib {compressed_size}",
                           self._debug)
            result.block_count = tracker.block_count
            result.block_types = dict(tracker.block_types)
        return result

    def _on_block(self, event: BlockEvent, points: List[BlockEvent]) -> None:
        diag.debug(f"block {event.index} {event.block_type}{' final' if event.final else ''} "
                   f"ends at bit {event.in_bits}, out {event.out_offset}", self._debug)
        if self._keep_access_points and not event.final:
            points.append(event)
