"""
End-to-end tests of the stage pipeline on a synthetic stage in Finland.
"""

import pandas as pd
import pytest

from stage_analysis.errors import EmptyTrace, MalformedInput
from stage_analysis.models import TimelinePolicy
from stage_analysis.projection import to_geographic
from stage_analysis.session import build_stage, process_trace, rebase_results, trace_to_frame
from stage_analysis.splits import compare_split_times, split_distances
from tests.helpers import planar

ZONE = 32635
X0, Y0 = 500_000.0, 6_700_000.0

# 2024-05-18 10:30:47 UTC
T0 = 1716028247000.0


def geo(x, y):
    """Geographic point at a planar offset from the stage start."""
    return to_geographic(planar(X0 + x, Y0 + y, ZONE), ZONE)


def record(x, y, seconds, t0=T0):
    g = geo(x, y)
    return {"lon": g.lon, "lat": g.lat, "timestamp_ms": t0 + seconds * 1000}


@pytest.fixture
def stage():
    """L-shaped stage: 1000 m east then 1000 m north."""
    return build_stage([geo(0, 0), geo(1000, 0), geo(1000, 1000)], margin_m=100.0)


def newest_first(records):
    return list(reversed(records))


@pytest.fixture
def records():
    """Scenario trace with one off-stage and one malformed record, newest first."""
    chronological = [
        record(0, 0, 0),
        record(500, 20, 50),
        record(700, 400, 70),  # off stage
        record(1000, 0, 100),
        {"lon": None, "lat": None, "timestamp_ms": T0 + 120_000},
        record(1010, 500, 160),
    ]
    return newest_first(chronological)


class TestBuildStage:
    def test_stage_geometry(self, stage):
        assert stage.epsg == ZONE
        assert stage.route.total_length == pytest.approx(2000.0, abs=1e-3)
        assert stage.corridor.margin_m == 100.0


class TestProcessTrace:
    def test_scenario_queries(self, stage, records):
        result = process_trace(records, stage, policy=TimelinePolicy.FALSE_ORIGIN)

        assert result.dropped_malformed == 1
        assert result.dropped_off_stage == 1
        assert [s.distance_m for s in result.samples] == pytest.approx(
            [0.0, 500.0, 1000.0, 1500.0], abs=1e-3
        )
        assert [s.elapsed_s for s in result.samples] == pytest.approx([0, 50, 100, 160])
        assert result.model.time_at_distance(750) == pytest.approx(75.0, abs=1e-3)
        assert result.model.distance_at_time(130) == pytest.approx(1250.0, abs=1e-3)

    def test_rounded_start(self, stage, records):
        result = process_trace(records, stage, policy=TimelinePolicy.ROUNDED_START)
        assert result.timeline.origin_ms == T0 + 13_000
        assert result.samples[0].elapsed_s == pytest.approx(-13.0)
        # the pre-origin sample cannot enter the time -> distance model
        assert result.model.discarded_inverse >= 1

    def test_explicit(self, stage, records):
        result = process_trace(records, stage, policy=TimelinePolicy.EXPLICIT,
                               explicit_origin=T0 - 5000)
        assert result.samples[0].elapsed_s == pytest.approx(5.0)

    def test_dataframe_input(self, stage, records):
        result = process_trace(pd.DataFrame(records), stage,
                               policy=TimelinePolicy.FALSE_ORIGIN)
        assert len(result.samples) == 4

    def test_all_off_stage(self, stage):
        far = newest_first([record(500, 900, 0), record(600, 900, 10)])
        with pytest.raises(EmptyTrace):
            process_trace(far, stage)

    def test_all_malformed(self, stage):
        with pytest.raises(MalformedInput):
            process_trace([{"lon": None, "lat": 1, "timestamp_ms": 0}], stage)

    def test_stage_shared_between_traces(self, stage, records):
        a = process_trace(records, stage, policy=TimelinePolicy.FALSE_ORIGIN)
        b = process_trace(records, stage, policy=TimelinePolicy.FALSE_ORIGIN)
        assert a.model.max_distance == pytest.approx(b.model.max_distance)


class TestRebaseResults:
    def test_common_origin(self, stage):
        early = newest_first([record(0, 0, 0), record(500, 0, 50), record(1000, 0, 100)])
        # second car's first fix is 10 s later
        late = newest_first([record(0, 0, 10), record(500, 0, 55), record(1000, 0, 100)])
        results = {
            "early": process_trace(early, stage, policy=TimelinePolicy.FALSE_ORIGIN),
            "late": process_trace(late, stage, policy=TimelinePolicy.FALSE_ORIGIN),
        }
        rebased = rebase_results(results)

        assert rebased["early"].timeline.origin_ms == T0 + 10_000
        assert rebased["late"].timeline.origin_ms == T0 + 10_000
        assert rebased["early"].samples[1].elapsed_s == pytest.approx(40.0)
        assert rebased["late"].samples[1].elapsed_s == pytest.approx(45.0)
        # originals untouched
        assert results["early"].samples[1].elapsed_s == pytest.approx(50.0)

    def test_comparison_table(self, stage):
        a = newest_first([record(0, 0, 0), record(500, 0, 50), record(1000, 0, 100)])
        b = newest_first([record(0, 0, 0), record(500, 0, 60), record(1000, 0, 110)])
        results = {
            "a": process_trace(a, stage, policy=TimelinePolicy.FALSE_ORIGIN),
            "b": process_trace(b, stage, policy=TimelinePolicy.FALSE_ORIGIN),
        }
        distances = split_distances(stage.route.total_length, 500)
        table = compare_split_times({k: r.model for k, r in results.items()}, distances)
        assert table.loc[500.0, "b_delta_s"] == pytest.approx(10.0, abs=0.01)
        assert pd.isna(table.loc[2000.0, "a"])

    def test_fixed_origin_rejected(self, stage):
        trace = newest_first([record(0, 0, 0), record(500, 0, 50)])
        results = {
            "a": process_trace(trace, stage, policy=TimelinePolicy.FALSE_ORIGIN),
            "b": process_trace(trace, stage, policy=TimelinePolicy.ROUNDED_START),
        }
        with pytest.raises(ValueError):
            rebase_results(results)


class TestTraceToFrame:
    def test_columns(self, stage, records):
        result = process_trace(records, stage, policy=TimelinePolicy.FALSE_ORIGIN)
        df = trace_to_frame(result.samples)
        assert list(df.columns) == [
            "timestamp", "timestamp_ms", "lon", "lat", "x_m", "y_m", "distance_m", "elapsed_s",
        ]
        assert len(df) == 4
        assert str(df["timestamp"].dt.tz) == "UTC"

    def test_empty(self):
        assert trace_to_frame(()).empty
