# gzinfo/heuristics.py
"""
Ratio-based guess at the encoder level.

The bitstream does not record the level an encoder ran at; this only buckets
uncompressed/compressed size. Every consumer must present the range as an
estimate.
"""
from typing import Tuple

# (upper bound on ratio, bucket label, estimated level range)
RATIO_BUCKETS = (
    (1.1, "incompressible", (0, 1)),
    (1.5, "low", (1, 3)),
    (2.5, "medium", (4, 6)),
)
TOP_BUCKET = ("high", (7, 9))


def compression_ratio(compressed_size: int, uncompressed_size: int) -> float:
    if compressed_size == 0:
        return 0.0
    return uncompressed_size / compressed_size


def classify_ratio(ratio: float) -> Tuple[str, Tuple[int, int]]:
    for bound, label, levels in RATIO_BUCKETS:
        if ratio < bound:
            return label, levels
    return TOP_BUCKET


def estimate_level_range(ratio: float) -> Tuple[int, int]:
    return classify_ratio(ratio)[1]
