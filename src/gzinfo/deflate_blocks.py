# gzinfo/deflate_blocks.py
"""
Incremental DEFLATE block walker (RFC 1951).

zlib does the actual inflating; it does not tell Python where one deflate
block ends and the next begins. BlockTracker follows the same compressed
bytes through the bitstream, decoding block headers and Huffman symbols
without producing plaintext, and reports a BlockEvent for every completed
block together with the bit offset and plaintext offset at that point.

Input arrives in arbitrary chunks, so a block header or a single symbol may
straddle two feeds. Progress is committed only after a whole unit (block
header including dynamic tables, one literal/length/distance symbol, or a
run of stored bytes) has been read; running out of bits rolls back to the
last commit and waits for the next feed.
"""
from typing import Dict, List, Optional, Sequence

from .errors import CorruptStream
from .types import BlockEvent, BLOCK_STORED, BLOCK_FIXED, BLOCK_DYNAMIC, BLOCK_TYPES

# Length codes 257..285: base length and extra bits (RFC 1951, 3.2.5)
LEN_BASE = [3, 4, 5, 6, 7, 8, 9, 10, 11, 13, 15, 17, 19, 23, 27, 31,
            35, 43, 51, 59, 67, 83, 99, 115, 131, 163, 195, 227, 258]
LEN_EXTRA = [0, 0, 0, 0, 0, 0, 0, 0, 1, 1, 1, 1, 2, 2, 2, 2,
             3, 3, 3, 3, 4, 4, 4, 4, 5, 5, 5, 5, 0]
# Distance codes 0..29: extra bits only, distances themselves are not needed
DIST_EXTRA = [0, 0, 0, 0, 1, 1, 2, 2, 3, 3, 4, 4, 5, 5, 6, 6,
              7, 7, 8, 8, 9, 9, 10, 10, 11, 11, 12, 12, 13, 13]
# Order in which code length code lengths are transmitted
CLEN_ORDER = [16, 17, 18, 0, 8, 7, 9, 6, 10, 5, 11, 4, 12, 3, 13, 2, 14, 1, 15]

_HEADER, _STORED, _HUFFMAN = 0, 1, 2


class _Starved(Exception):
    pass


class HuffmanCode:
    """
    Canonical Huffman code keyed for LSB-first bit reading.

    Codes are packed starting with their most significant bit, so each code
    is stored bit-reversed with a sentinel bit above it: key = (1 << len) | rev.
    """
    __slots__ = ("lookup", "min_len", "max_len")

    def __init__(self, lengths: Sequence[int]):
        used = [n for n in lengths if n]
        if not used:
            raise CorruptStream("empty Huffman code")
        self.min_len = min(used)
        self.max_len = max(used)

        bl_count = [0] * (self.max_len + 1)
        for n in used:
            bl_count[n] += 1
        left = 1
        for bits in range(1, self.max_len + 1):
            left = (left << 1) - bl_count[bits]
            if left < 0:
                raise CorruptStream("over-subscribed Huffman code")

        next_code = [0] * (self.max_len + 1)
        code = 0
        for bits in range(1, self.max_len + 1):
            code = (code + bl_count[bits - 1]) << 1
            next_code[bits] = code

        self.lookup: Dict[int, int] = {}
        for sym, n in enumerate(lengths):
            if not n:
                continue
            c = next_code[n]
            next_code[n] += 1
            rev = 0
            for _ in range(n):
                rev = (rev << 1) | (c & 1)
                c >>= 1
            self.lookup[(1 << n) | rev] = sym


FIXED_LITLEN = HuffmanCode([8] * 144 + [9] * 112 + [7] * 24 + [8] * 8)
FIXED_DIST = HuffmanCode([5] * 32)


class BlockTracker:
    def __init__(self, base_offset: int = 0):
        self._base = base_offset  # input offset of the first deflate byte, for error messages
        self._buf = bytearray()
        self._pos = 0             # bit position in _buf
        self._mark = 0            # last committed bit position
        self._dropped_bits = 0    # bits discarded from the front of _buf
        self._out = 0
        self._out_mark = 0
        self._state = _HEADER
        self._final = False
        self._kind = BLOCK_FIXED
        self._lit: Optional[HuffmanCode] = None
        self._dist: Optional[HuffmanCode] = None
        self._stored_left = 0
        self.block_count = 0
        self.block_types: Dict[str, int] = {t: 0 for t in BLOCK_TYPES}
        self.done = False
        self.last_event: Optional[BlockEvent] = None

    @property
    def bits_consumed(self) -> int:
        return self._dropped_bits + self._mark

    @property
    def bytes_consumed(self) -> int:
        return (self.bits_consumed + 7) >> 3

    def feed(self, data: bytes) -> List[BlockEvent]:
        """Consume another chunk of deflate data and return the blocks it completed."""
        if self.done or not data:
            return []
        self._buf += data
        events: List[BlockEvent] = []
        try:
            while not self.done:
                if self._state == _HEADER:
                    self._read_block_header()
                elif self._state == _STORED:
                    self._skip_stored(events)
                else:
                    self._scan_symbols(events)
        except _Starved:
            self._pos = self._mark
            self._out = self._out_mark
        self._compact()
        return events

    # ---- bit access ----

    def _where(self) -> int:
        return self._base + ((self._dropped_bits + self._pos) >> 3)

    def _commit(self) -> None:
        self._mark = self._pos
        self._out_mark = self._out

    def _compact(self) -> None:
        if self.done:
            self._dropped_bits += len(self._buf) << 3
            self._mark -= len(self._buf) << 3
            self._buf.clear()
            self._pos = self._mark
            return
        drop = self._mark >> 3
        if drop:
            del self._buf[:drop]
            self._pos -= drop << 3
            self._mark -= drop << 3
            self._dropped_bits += drop << 3

    def _peek(self, n: int) -> int:
        pos = self._pos
        i = pos >> 3
        shift = pos & 7
        chunk = int.from_bytes(self._buf[i:i + ((shift + n + 7) >> 3)], "little")
        return (chunk >> shift) & ((1 << n) - 1)

    def _bits(self, n: int) -> int:
        if n == 0:
            return 0
        if self._pos + n > (len(self._buf) << 3):
            raise _Starved()
        v = self._peek(n)
        self._pos += n
        return v

    def _decode(self, code: HuffmanCode) -> int:
        n = min(code.max_len, (len(self._buf) << 3) - self._pos)
        v = self._peek(n) if n > 0 else 0
        lookup = code.lookup
        for length in range(code.min_len, n + 1):
            sym = lookup.get((1 << length) | (v & ((1 << length) - 1)))
            if sym is not None:
                self._pos += length
                return sym
        if n < code.max_len:
            raise _Starved()
        raise CorruptStream("invalid Huffman code", self._where())

    # ---- block structure ----

    def _read_block_header(self) -> None:
        final = self._bits(1)
        btype = self._bits(2)
        if btype == 0:
            self._pos = (self._pos + 7) & ~7
            length = self._bits(16)
            nlength = self._bits(16)
            if length != (~nlength & 0xFFFF):
                raise CorruptStream("stored block length check failed", self._where())
            self._stored_left = length
            self._kind, self._state = BLOCK_STORED, _STORED
        elif btype == 1:
            self._lit, self._dist = FIXED_LITLEN, FIXED_DIST
            self._kind, self._state = BLOCK_FIXED, _HUFFMAN
        elif btype == 2:
            self._lit, self._dist = self._read_dynamic_codes()
            self._kind, self._state = BLOCK_DYNAMIC, _HUFFMAN
        else:
            raise CorruptStream("invalid block type", self._where())
        self._final = bool(final)
        self._commit()

    def _read_dynamic_codes(self):
        hlit = self._bits(5) + 257
        hdist = self._bits(5) + 1
        hclen = self._bits(4) + 4
        if hlit > 286 or hdist > 30:
            raise CorruptStream("too many length or distance symbols", self._where())

        clens = [0] * 19
        for i in range(hclen):
            clens[CLEN_ORDER[i]] = self._bits(3)
        clcode = HuffmanCode(clens)

        total = hlit + hdist
        lengths: List[int] = []
        while len(lengths) < total:
            sym = self._decode(clcode)
            if sym < 16:
                lengths.append(sym)
            elif sym == 16:
                if not lengths:
                    raise CorruptStream("repeat with no previous code length", self._where())
                lengths.extend([lengths[-1]] * (3 + self._bits(2)))
            elif sym == 17:
                lengths.extend([0] * (3 + self._bits(3)))
            else:
                lengths.extend([0] * (11 + self._bits(7)))
        if len(lengths) > total:
            raise CorruptStream("code length repeat overruns the table", self._where())
        if lengths[256] == 0:
            raise CorruptStream("missing end-of-block code", self._where())

        dist_lengths = lengths[hlit:]
        dist = HuffmanCode(dist_lengths) if any(dist_lengths) else None
        return HuffmanCode(lengths[:hlit]), dist

    def _skip_stored(self, events: List[BlockEvent]) -> None:
        while self._stored_left:
            avail = len(self._buf) - (self._pos >> 3)
            if avail <= 0:
                raise _Starved()
            take = min(avail, self._stored_left)
            self._pos += take << 3
            self._out += take
            self._stored_left -= take
            self._commit()
        self._end_block(events)

    def _scan_symbols(self, events: List[BlockEvent]) -> None:
        lit, dist = self._lit, self._dist
        while True:
            sym = self._decode(lit)
            if sym < 256:
                self._out += 1
            elif sym == 256:
                self._commit()
                self._end_block(events)
                return
            else:
                idx = sym - 257
                if idx >= 29:
                    raise CorruptStream("invalid literal/length symbol", self._where())
                length = LEN_BASE[idx] + self._bits(LEN_EXTRA[idx])
                if dist is None:
                    raise CorruptStream("match in a block without distance codes", self._where())
                dsym = self._decode(dist)
                if dsym >= 30:
                    raise CorruptStream("invalid distance symbol", self._where())
                self._bits(DIST_EXTRA[dsym])
                self._out += length
            self._commit()

    def _end_block(self, events: List[BlockEvent]) -> None:
        event = BlockEvent(
            index=self.block_count,
            block_type=self._kind,
            final=self._final,
            in_bits=self.bits_consumed,
            out_offset=self._out,
        )
        self.block_count += 1
        self.block_types[self._kind] += 1
        self.last_event = event
        events.append(event)
        if self._final:
            self.done = True
        else:
            self._state = _HEADER
