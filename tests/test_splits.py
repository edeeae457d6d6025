"""
Unit tests for notional split tables.
"""

import numpy as np
import pytest

from stage_analysis.errors import NonMonotonicData
from stage_analysis.interpolation import DistanceTimeInterpolator
from stage_analysis.splits import compare_split_times, split_distances, split_times


@pytest.fixture
def fast():
    return DistanceTimeInterpolator.from_pairs([(500, 50), (1000, 100), (1500, 160)])


@pytest.fixture
def slow():
    return DistanceTimeInterpolator.from_pairs([(500, 55), (1000, 108)])


class TestSplitDistances:
    def test_regular_spacing(self):
        assert list(split_distances(2000, 500)) == [500.0, 1000.0, 1500.0, 2000.0]

    def test_partial_last_interval_left_out(self):
        assert list(split_distances(1700, 500)) == [500.0, 1000.0, 1500.0]

    def test_short_route(self):
        assert split_distances(300, 500).size == 0

    def test_bad_interval(self):
        with pytest.raises(ValueError):
            split_distances(1000, 0)


class TestSplitTimes:
    def test_table(self, fast):
        df = split_times(fast, [500, 1000, 1500])
        assert list(df["split"]) == [1, 2, 3]
        assert list(df["elapsed_s"]) == pytest.approx([50.0, 100.0, 160.0])
        assert list(df["sector_s"]) == pytest.approx([50.0, 50.0, 60.0])

    def test_uncovered_splits_left_out(self, slow):
        df = split_times(slow, [500, 1000, 1500])
        assert list(df["distance_m"]) == [500.0, 1000.0]

    def test_clamped(self, slow):
        df = split_times(slow, [500, 1000, 1500], clamp=True)
        assert list(df["elapsed_s"]) == pytest.approx([55.0, 108.0, 108.0])

    def test_nothing_covered(self, slow):
        df = split_times(slow, [5000])
        assert df.empty


class TestCompareSplitTimes:
    @pytest.mark.parametrize("keys", [("best_s",), ("a", "a_delta_s")])
    def test_clashing_driver_keys_rejected(self, fast, keys):
        with pytest.raises(ValueError, match="clash"):
            compare_split_times({key: fast for key in keys}, [500])

    def test_columns_and_deltas(self, fast, slow):
        df = compare_split_times({"fast": fast, "slow": slow}, [500, 1000, 1500])
        assert list(df.index) == [500.0, 1000.0, 1500.0]
        assert list(df["best_s"]) == pytest.approx([50.0, 100.0, 160.0])
        assert list(df["slow_delta_s"].iloc[:2]) == pytest.approx([5.0, 8.0])
        assert list(df["fast_delta_s"]) == pytest.approx([0.0, 0.0, 0.0])

    def test_unreached_split_is_nan(self, fast, slow):
        df = compare_split_times({"fast": fast, "slow": slow}, [1500])
        assert np.isnan(df.loc[1500.0, "slow"])
        assert np.isnan(df.loc[1500.0, "slow_delta_s"])

    def test_rounding(self):
        m = DistanceTimeInterpolator.from_pairs([(300, 10)])
        df = compare_split_times({"a": m}, [100])
        assert df.loc[100.0, "a"] == 3.333
        raw = compare_split_times({"a": m}, [100], digits=None)
        assert raw.loc[100.0, "a"] == pytest.approx(10 / 3)


class TestSplitOrdering:
    def test_unordered_distances_rejected(self, fast):
        with pytest.raises(NonMonotonicData):
            split_times(fast, [1000, 500])
        with pytest.raises(NonMonotonicData):
            compare_split_times({"fast": fast}, [500, 500])
