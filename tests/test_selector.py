"""Tests for PeakSelector: band, threshold, bucketing and top-K."""

import numpy as np
import pytest

from humscope.core.mapper import MappedSpectrum
from humscope.core.selector import Candidate, PeakSelector, Selection
from humscope.errors import ConfigurationError


def _spectrum(*pairs) -> MappedSpectrum:
    return MappedSpectrum.from_bins(pairs)


class TestBandFilter:
    def test_band_edges_are_exclusive(self):
        mapped = _spectrum((0.0, 50.0), (250.0, 50.0), (499.9, 50.0), (500.0, 50.0), (600.0, 50.0))
        buckets = PeakSelector().candidates(mapped)
        assert sorted(buckets) == [250, 499]

    def test_custom_band(self):
        mapped = _spectrum((40.0, 50.0), (60.0, 50.0), (120.0, 50.0))
        buckets = PeakSelector(band_low=50, band_high=100).candidates(mapped)
        assert list(buckets) == [60]


class TestThreshold:
    def test_boundary_value_excluded(self):
        mapped = _spectrum((100.0, 10.0), (200.0, 11.0))
        selection = PeakSelector().select(mapped)
        assert [p.hz for p in selection.peaks] == [200]

    def test_non_finite_values_filtered(self):
        mapped = _spectrum((100.0, float("-inf")), (150.0, float("nan")), (200.0, float("inf")), (250.0, 30.0))
        selection = PeakSelector().select(mapped)
        assert [p.hz for p in selection.peaks] == [250]

    def test_all_below_threshold_is_empty(self):
        mapped = _spectrum((100.0, 5.0), (200.0, -3.0))
        selection = PeakSelector().select(mapped)
        assert not selection
        assert selection.dominant is None
        assert selection.peaks == []


class TestBucketing:
    def test_truncates_to_integer_hz(self):
        mapped = _spectrum((118.43, 90.0))
        assert PeakSelector().candidates(mapped) == {118: 90.0}

    def test_last_write_wins_by_default(self):
        mapped = _spectrum((100.2, 30.0), (100.7, 20.0))
        assert PeakSelector().candidates(mapped) == {100: 20.0}

    def test_first_write_wins(self):
        mapped = _spectrum((100.2, 30.0), (100.7, 40.0))
        assert PeakSelector(collision="first").candidates(mapped) == {100: 30.0}

    @pytest.mark.parametrize("pairs,expected", [
        (((100.2, 30.0), (100.7, 20.0)), 30.0),
        (((100.2, 20.0), (100.7, 30.0)), 30.0),
    ])
    def test_max_wins(self, pairs, expected):
        assert PeakSelector(collision="max").candidates(_spectrum(*pairs)) == {100: expected}

    def test_unknown_policy_rejected(self):
        with pytest.raises(ConfigurationError):
            PeakSelector(collision="random")


class TestTopK:
    def test_more_than_k_candidates_truncated(self):
        rng = np.random.RandomState(7)
        dbs = rng.uniform(11, 90, size=25)
        mapped = MappedSpectrum(
            frequencies_hz=np.arange(1, 26, dtype=np.float64) * 10.0,
            magnitudes_db=dbs,
        )
        selection = PeakSelector().select(mapped)

        assert len(selection.peaks) == 10
        values = [p.db for p in selection.peaks]
        assert all(a >= b for a, b in zip(values, values[1:]))
        assert values == sorted(dbs, reverse=True)[:10]

    def test_dominant_is_loudest(self):
        mapped = _spectrum((50.0, 20.0), (60.0, 80.0), (70.0, 40.0))
        selection = PeakSelector().select(mapped)
        assert selection.dominant == Candidate(60, 80.0)
        assert selection.dominant == max(selection.peaks, key=lambda p: p.db)

    def test_ties_keep_scan_order(self):
        mapped = _spectrum((50.0, 40.0), (60.0, 40.0), (70.0, 40.0))
        selection = PeakSelector().select(mapped)
        assert [p.hz for p in selection.peaks] == [50, 60, 70]

    def test_custom_top_k(self):
        mapped = _spectrum((50.0, 20.0), (60.0, 80.0), (70.0, 40.0))
        selection = PeakSelector(top_k=2).select(mapped)
        assert [p.hz for p in selection.peaks] == [60, 70]

    def test_invalid_top_k(self):
        with pytest.raises(ConfigurationError):
            PeakSelector(top_k=0)


def test_selection_truthiness():
    assert not Selection()
    assert Selection(peaks=[Candidate(100, 20.0)])
