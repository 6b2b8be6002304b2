"""
Test: Difference Histogram Binning
==================================

Percentile sweep, scaling and formatting of difference histograms.
"""

import random

import pytest

from models.domain.histogram import DifferenceRecord, HistogramResult
from services.binning import (
    count_buckets,
    format_value,
    render_histogram,
    segment_bounds,
)


def substitution(start, end):
    return DifferenceRecord(start=start, end=end, edit_distance=1)


def insertion(at):
    return DifferenceRecord(start=at, end=at, edit_distance=-1)


# =============================================================================
# SEGMENTS
# =============================================================================

class TestSegments:

    def test_hundred_contiguous_segments(self):
        bounds = segment_bounds(1000)
        assert len(bounds) == 100
        assert bounds[0] == (0, 10)
        assert bounds[49] == (490, 500)
        assert bounds[-1] == (990, 1000)
        for (_, prev_end), (start, _) in zip(bounds, bounds[1:]):
            assert start == prev_end

    def test_boundaries_round_half_up(self):
        bounds = segment_bounds(50)
        # 0.5 -> 1, 1.0 -> 1, 1.5 -> 2
        assert bounds[0] == (0, 1)
        assert bounds[1] == (1, 1)
        assert bounds[2] == (1, 2)
        assert bounds[-1] == (50, 50)

    def test_empty_document(self):
        assert segment_bounds(0) == [(0, 0)] * 100


class TestFormatting:

    def test_two_places(self):
        assert format_value(0.0) == "0.00"
        assert format_value(1.0) == "1.00"
        assert format_value(1 / 3) == "0.33"

    def test_halves_round_up(self):
        assert format_value(0.125) == "0.13"
        assert format_value(0.025) == "0.03"


# =============================================================================
# SCENARIOS
# =============================================================================

class TestScenarios:

    def test_no_differences(self):
        result = render_histogram("base", 1000, [])
        assert result.values == ("0.00",) * 100

    def test_single_substitution_at_start(self):
        buckets = count_buckets(1000, [substitution(0, 10)])
        assert buckets.counts[0] == 1
        assert sum(buckets.counts) == 1
        assert buckets.max_value == 1

        result = render_histogram("base", 1000, [substitution(0, 10)])
        assert result.values[0] == "1.00"
        assert set(result.values[1:]) == {"0.00"}

    def test_single_insertion_in_middle(self):
        buckets = count_buckets(1000, [insertion(500)])
        assert buckets.max_value == 0
        assert buckets.additions[49] is True
        assert sum(buckets.additions) == 1

        result = render_histogram("base", 1000, [insertion(500)])
        assert result.values[49] == "0.025"
        assert result.buckets[49] == 0.025
        assert all(v == "0.00" for i, v in enumerate(result.values) if i != 49)


# =============================================================================
# SWEEP
# =============================================================================

class TestSweep:

    def test_zero_length_insertion_on_boundary_lands_in_first_segment(self):
        buckets = count_buckets(1000, [insertion(10)])
        assert buckets.additions[0] is True
        assert buckets.additions[1] is False

    def test_zero_length_non_insertion_is_counted(self):
        buckets = count_buckets(1000, [DifferenceRecord(start=300, end=300, edit_distance=2)])
        assert buckets.counts[29] == 1
        assert not any(buckets.additions)

    def test_wide_insertion_marker_is_counted(self):
        buckets = count_buckets(1000, [DifferenceRecord(start=300, end=305, edit_distance=-1)])
        assert buckets.counts[29] == 1
        assert not any(buckets.additions)

    def test_spanning_difference_counted_once_in_first_segment(self):
        buckets = count_buckets(1000, [substitution(0, 500)])
        assert buckets.counts[0] == 1
        assert sum(buckets.counts) == 1

    def test_differences_past_end_are_ignored(self):
        buckets = count_buckets(1000, [substitution(2000, 2010)])
        assert sum(buckets.counts) == 0
        assert buckets.max_value == 0

    def test_mixed_differences(self, sample_differences):
        buckets = count_buckets(1000, sample_differences)
        assert buckets.counts[0] == 2
        assert buckets.additions[49] is True
        assert buckets.counts[69] == 1

        values = render_histogram("base", 1000, sample_differences).values
        assert values[0] == "1.00"
        assert values[49] == "0.03"
        assert values[69] == "0.50"


# =============================================================================
# SCALING LAWS
# =============================================================================

class TestScaling:

    def test_busiest_bucket_scales_to_one(self):
        diffs = [substitution(100, 105), substitution(101, 103), substitution(800, 805)]
        buckets = count_buckets(1000, diffs)
        scaled = buckets.scaled()
        assert max(scaled) == 1.0
        assert scaled[buckets.counts.index(buckets.max_value)] == 1.0

    def test_insertion_bias_is_clamped(self):
        diffs = [substitution(0, 10), insertion(3)]
        diffs.sort(key=DifferenceRecord.sort_key)
        buckets = count_buckets(1000, diffs)
        assert buckets.counts[0] == 1
        assert buckets.additions[0] is True
        assert buckets.scaled()[0] == 1.0

    def test_insertion_bias_added_to_ratio(self):
        diffs = [substitution(0, 10), substitution(1, 2), insertion(395), substitution(400, 401)]
        buckets = count_buckets(1000, diffs)
        assert buckets.counts[39] == 1
        assert buckets.additions[39] is True
        assert buckets.scaled()[39] == pytest.approx(0.525)

    def test_insertion_only_bucket_with_substantive_elsewhere(self):
        diffs = [substitution(0, 10), insertion(500)]
        assert count_buckets(1000, diffs).scaled()[49] == pytest.approx(0.025)

    @pytest.mark.parametrize("seed", [1, 7, 42])
    def test_always_hundred_values_in_unit_range(self, seed):
        rng = random.Random(seed)
        length = rng.randint(1, 5000)
        diffs = []
        for _ in range(rng.randint(0, 300)):
            start = rng.randint(0, length)
            if rng.random() < 0.3:
                diffs.append(insertion(start))
            else:
                diffs.append(substitution(start, min(length, start + rng.randint(1, 20))))
        diffs.sort(key=DifferenceRecord.sort_key)

        result = render_histogram("base", length, diffs)
        assert len(result.values) == 100
        assert all(0.0 <= v <= 1.0 for v in result.buckets)


# =============================================================================
# OUTPUT
# =============================================================================

class TestHistogramResult:

    def test_json_format(self):
        result = render_histogram('Base "A"', 1000, [substitution(0, 10)])
        text = result.to_json()
        assert text.startswith('{"baseName": "Base \\"A\\"", "histogram": [1.00,0.00,')
        assert text.endswith('0.00]}')
        assert text.count(",") == 100  # one after baseName, 99 between values

    def test_identical_inputs_identical_bytes(self, sample_differences):
        a = render_histogram("base", 1000, sample_differences).to_bytes()
        b = render_histogram("base", 1000, list(sample_differences)).to_bytes()
        assert a == b

    def test_rejects_wrong_bucket_count(self):
        with pytest.raises(ValueError):
            HistogramResult(base_name="x", values=("0.00",) * 99)
