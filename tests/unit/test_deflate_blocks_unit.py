# tests/unit/test_deflate_blocks_unit.py

import random
import unittest
import zlib

from gzinfo.deflate_blocks import BlockTracker, HuffmanCode
from gzinfo.errors import CorruptStream


def raw_deflate(*parts, level=6, flush=zlib.Z_SYNC_FLUSH):
    """Raw deflate of `parts`, with a `flush` between consecutive parts."""
    c = zlib.compressobj(level, zlib.DEFLATED, -zlib.MAX_WBITS)
    out = b""
    for i, p in enumerate(parts):
        out += c.compress(p)
        if i < len(parts) - 1:
            out += c.flush(flush)
    return out + c.flush()


def sample_text(n_words=4000, seed=7):
    rnd = random.Random(seed)
    words = ["alpha", "bravo", "charlie", "delta", "echo", "foxtrot", "golf",
             "hotel", "india", "juliet", "kilo", "lima", "mike", "november"]
    return " ".join(rnd.choice(words) + str(rnd.randint(0, 99)) for _ in range(n_words)).encode()


def feed_all(tracker, data, step):
    events = []
    for i in range(0, len(data), step):
        events.extend(tracker.feed(data[i:i + step]))
    return events


class TestHuffmanCode(unittest.TestCase):
    def test_canonical_assignment(self):
        # A=0, B=absent, C=110, D=10, E=111 (MSB first)
        code = HuffmanCode([1, 0, 3, 2, 3])
        self.assertEqual(code.min_len, 1)
        self.assertEqual(code.max_len, 3)
        # stored bit-reversed with a sentinel bit
        self.assertEqual(code.lookup[0b10], 0)        # "0"
        self.assertEqual(code.lookup[0b101], 3)       # "10" reversed -> 01
        self.assertEqual(code.lookup[0b1011], 2)      # "110" reversed -> 011
        self.assertEqual(code.lookup[0b1111], 4)      # "111"

    def test_over_subscribed(self):
        with self.assertRaises(CorruptStream):
            HuffmanCode([1, 1, 1])

    def test_empty(self):
        with self.assertRaises(CorruptStream):
            HuffmanCode([0, 0, 0])


class TestBlockTracker(unittest.TestCase):
    def test_empty_stream_is_one_final_block(self):
        data = raw_deflate(b"")
        t = BlockTracker()
        events = t.feed(data)
        self.assertTrue(t.done)
        self.assertEqual(t.block_count, 1)
        self.assertEqual(len(events), 1)
        self.assertTrue(events[0].final)
        self.assertEqual(events[0].out_offset, 0)
        self.assertEqual(t.bytes_consumed, len(data))

    def test_sync_flush_produces_access_points(self):
        a = sample_text(300, seed=1)
        b = sample_text(300, seed=2)
        data = raw_deflate(a, b)
        t = BlockTracker()
        events = t.feed(data)
        self.assertTrue(t.done)
        self.assertGreaterEqual(t.block_count, 3)
        self.assertEqual(len(events), t.block_count)
        nonfinal = [e for e in events if not e.final]
        self.assertIn(len(a), [e.out_offset for e in nonfinal])
        # the sync flush marker is an empty stored block
        self.assertGreaterEqual(t.block_types["stored"], 1)
        self.assertTrue(events[-1].final)
        self.assertEqual(events[-1].out_offset, len(a) + len(b))
        self.assertEqual(t.bytes_consumed, len(data))

    def test_block_indices_and_offsets_are_monotonic(self):
        data = raw_deflate(*[sample_text(200, seed=s) for s in range(5)])
        events = BlockTracker().feed(data)
        self.assertEqual([e.index for e in events], list(range(len(events))))
        offsets = [e.in_bits for e in events]
        self.assertEqual(offsets, sorted(offsets))
        outs = [e.out_offset for e in events]
        self.assertEqual(outs, sorted(outs))

    def test_stored_blocks_at_level_zero(self):
        payload = bytes(random.Random(3).getrandbits(8) for _ in range(200_000))
        data = raw_deflate(payload, level=0)
        t = BlockTracker()
        events = feed_all(t, data, 4096)
        self.assertTrue(t.done)
        self.assertGreaterEqual(t.block_count, 4)
        self.assertEqual(t.block_types["stored"], t.block_count)
        self.assertEqual(events[-1].out_offset, len(payload))
        self.assertEqual(t.bytes_consumed, len(data))

    def test_dynamic_blocks_for_text(self):
        data = raw_deflate(sample_text(), level=9)
        t = BlockTracker()
        events = t.feed(data)
        self.assertGreaterEqual(t.block_types["dynamic"], 1)
        self.assertEqual(events[-1].out_offset, len(sample_text()))

    def test_result_independent_of_feed_size(self):
        data = raw_deflate(sample_text(1500, seed=11), sample_text(1500, seed=12), level=6)
        whole = BlockTracker()
        expected = whole.feed(data)
        for step in (1, 2, 3, 5, 64, 1000):
            t = BlockTracker()
            got = feed_all(t, data, step)
            self.assertEqual(got, expected, f"step={step}")
            self.assertEqual(t.bytes_consumed, whole.bytes_consumed)

    def test_bytes_after_final_block_are_ignored(self):
        data = raw_deflate(b"hello hello hello")
        t = BlockTracker()
        t.feed(data + b"\xde\xad\xbe\xef trailer")
        self.assertTrue(t.done)
        self.assertEqual(t.bytes_consumed, len(data))
        self.assertEqual(t.feed(b"more"), [])

    def test_incomplete_stream_waits_for_more(self):
        data = raw_deflate(sample_text(500))
        t = BlockTracker()
        t.feed(data[:len(data) // 2])
        self.assertFalse(t.done)
        t.feed(data[len(data) // 2:])
        self.assertTrue(t.done)

    def test_reserved_block_type(self):
        with self.assertRaises(CorruptStream):
            BlockTracker().feed(b"\x07\x00\x00")

    def test_stored_length_check(self):
        # final stored block, LEN=5, NLEN not its complement
        with self.assertRaises(CorruptStream):
            BlockTracker().feed(b"\x01\x05\x00\x00\x00hello")


if __name__ == "__main__":
    unittest.main(verbosity=2)
