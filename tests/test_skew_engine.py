"""
Tests for skew_engine.py - cumulative G-C skew computation.
"""

import random

import numpy as np
import pytest

from SkewFinder.skew_engine import compute, compute_array, minimum_skew_positions, skew_extremes


def _reference_skew(sequence):
    skew = [0]
    for base in sequence:
        if base in "Gg":
            skew.append(skew[-1] + 1)
        elif base in "Cc":
            skew.append(skew[-1] - 1)
        else:
            skew.append(skew[-1])
    return skew


class TestCompute:
    """Literal examples and invariants of compute()."""

    def test_literal_example(self):
        assert compute("GGCC") == [0, 1, 2, 1, 0]

    def test_empty_sequence(self):
        assert compute("") == [0]

    def test_case_insensitive(self):
        assert compute("gcgc") == compute("GCGC")
        assert compute("gGcC") == [0, 1, 2, 1, 0]

    def test_no_gc_is_all_zero(self):
        seq = "ATATNNRYKM"
        assert compute(seq) == [0] * (len(seq) + 1)

    def test_ambiguity_codes_contribute_zero(self):
        assert compute("GNSC") == [0, 1, 1, 1, 0]

    def test_non_ascii_characters(self):
        assert compute("GéC") == [0, 1, 1, 0]

    @pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
    def test_matches_reference_scan(self, seed):
        rng = random.Random(seed)
        seq = "".join(rng.choice("ACGTacgtN") for _ in range(rng.randint(0, 2000)))
        skew = compute(seq)
        assert len(skew) == len(seq) + 1
        assert skew[0] == 0
        assert skew == _reference_skew(seq)

    def test_returns_python_ints(self):
        skew = compute("GC")
        assert all(type(v) is int for v in skew)

    def test_rejects_non_string(self):
        with pytest.raises(TypeError):
            compute(12345)

    def test_compute_array_dtype(self):
        arr = compute_array("GGG")
        assert arr.dtype == np.int64
        assert arr.tolist() == [0, 1, 2, 3]


class TestMinimumSkew:
    """Derived minimum/maximum helpers (not performed by compute)."""

    def test_all_minimum_positions(self):
        assert minimum_skew_positions([0, -1, 0, -1, 1]) == [1, 3]

    def test_minimum_of_computed_curve(self):
        # Skew dips to -2 after "CC"
        assert minimum_skew_positions(compute("CCGG")) == [2]

    def test_empty_curve(self):
        assert minimum_skew_positions([]) == []
        assert skew_extremes([])['min_position'] is None

    def test_extremes(self):
        extremes = skew_extremes(compute("GGCCCC"))
        assert extremes == {'min_skew': -2, 'min_position': 6, 'max_skew': 2, 'max_position': 2}
