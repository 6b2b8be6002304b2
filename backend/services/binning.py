"""
Difference histogram binning

Reduces the sorted difference ranges of one base witness to 100
percentile buckets of normalized density.

Sweep:
    Segment p covers [round(L*(p-1)/100), round(L*p/100)], both ends
    inclusive so zero-length ranges sitting on a boundary still land.
    Differences are consumed from the front of the sorted queue while they
    overlap the current segment; the first one that does not ends the scan
    for that segment. A difference is counted once, in the first segment
    it overlaps. Ranges that overlap each other across several segments
    are therefore not spread out; inputs are expected sorted by
    (start, end) with no re-overlap of segments already passed.

Scaling:
    Substantive differences are counted per bucket and divided by the
    busiest bucket. Insertions have no width on the base, so a bucket
    holding one gets a fixed +0.025 mark instead of a count.
"""
from collections import deque
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Tuple

from models.domain.histogram import (
    HISTOGRAM_BUCKETS,
    DifferenceRecord,
    HistogramResult,
)

ADDITION_BIAS = 0.025
EMPTY_VALUE = "0.00"
ADDITION_ONLY_VALUE = "0.025"

_TWO_PLACES = Decimal("0.01")


def segment_bounds(length: int) -> List[Tuple[int, int]]:
    """Inclusive [start, end] position bounds of each percentile segment"""
    bounds = []
    first = 0
    for percent in range(1, HISTOGRAM_BUCKETS + 1):
        # round half up, as integer arithmetic
        last = (length * percent + 50) // 100
        bounds.append((first, last))
        first = last
    return bounds


def format_value(value: float) -> str:
    """Two decimal places, halves rounded up"""
    return str(Decimal(repr(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


@dataclass
class BucketCounts:
    """Raw sweep output before scaling"""
    counts: List[int]
    additions: List[bool]

    @property
    def max_value(self) -> int:
        return max(self.counts) if self.counts else -1

    def scaled(self) -> List[float]:
        """Bucket values as floats in [0.0, 1.0]"""
        max_value = self.max_value
        out = []
        for count, added in zip(self.counts, self.additions):
            if max_value > 0:
                value = count / max_value
                if added:
                    value += ADDITION_BIAS
                out.append(min(value, 1.0))
            else:
                out.append(ADDITION_BIAS if added else 0.0)
        return out

    def formatted(self) -> List[str]:
        """Bucket values as they are written to the cached JSON"""
        if self.max_value > 0:
            return [format_value(v) for v in self.scaled()]
        return [ADDITION_ONLY_VALUE if added else EMPTY_VALUE for added in self.additions]


def count_buckets(length: int, differences: Iterable[DifferenceRecord]) -> BucketCounts:
    """
    Sweep sorted differences into percentile buckets.

    Args:
        length: Base witness text length
        differences: Differences on the base, sorted by (start, end)

    Returns:
        BucketCounts with per-bucket substantive counts and insertion flags
    """
    counts = [0] * HISTOGRAM_BUCKETS
    additions = [False] * HISTOGRAM_BUCKETS
    pending = deque(differences)

    for bucket, (seg_start, seg_end) in enumerate(segment_bounds(length)):
        if not pending:
            break
        while pending:
            diff = pending[0]
            if not (seg_start <= diff.end and diff.start <= seg_end):
                break
            pending.popleft()
            if diff.is_insertion:
                additions[bucket] = True
            else:
                counts[bucket] += 1

    return BucketCounts(counts=counts, additions=additions)


def render_histogram(base_name: str, length: int, differences: Iterable[DifferenceRecord]) -> HistogramResult:
    """Bin differences and package the formatted values with the base name"""
    buckets = count_buckets(length, differences)
    return HistogramResult(base_name=base_name, values=tuple(buckets.formatted()))
