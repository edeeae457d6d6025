"""
Stage Session Builder for Rally Stage Analysis

This module orchestrates the complete pipeline, from raw telemetry records
of one driver to an annotated trace and its interpolation model:

1. Ingests records (reverse to chronological, drop malformed)
2. Projects samples into the route's zone
3. Keeps the samples inside the stage corridor
4. Computes distance along the route
5. Assigns the time origin and elapsed times
6. Builds the distance/time interpolator
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Hashable, Iterable, Mapping, Optional, Sequence

import pandas as pd

from . import constants
from . import corridor as corridor_mod
from . import ingest
from . import timeline as timeline_mod
from .corridor import Corridor
from .errors import EmptyTrace
from .interpolation import DistanceTimeInterpolator
from .models import GeographicPoint, TelemetrySample, TimelinePolicy, TraceResult
from .route import Route

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stage:
    """Route and corridor of one stage, shared by every trace on it."""
    route: Route
    corridor: Corridor

    @property
    def epsg(self) -> int:
        return self.route.epsg


def build_stage(route_points: Sequence[GeographicPoint],
                margin_m: float = constants.CORRIDOR_MARGIN_M,
                zone: Optional[int] = None) -> Stage:
    """
    Build the read-only geometry of a stage.
    
    Args:
        route_points: Stage route as ordered lon/lat points.
        margin_m: Corridor half-width. Default CORRIDOR_MARGIN_M.
        zone: UTM EPSG code; defaults to the zone of the first route point.
        
    Returns:
        Stage with route and corridor.
    """
    route = Route.from_geographic(route_points, zone=zone)
    return Stage(route=route, corridor=corridor_mod.build_corridor(route, margin_m))


def process_trace(records: Iterable, stage: Stage,
                  policy: TimelinePolicy = TimelinePolicy.ROUNDED_START,
                  explicit_origin=None,
                  tz: str = constants.DEFAULT_TIMEZONE,
                  reverse: bool = True,
                  clamp: bool = False) -> TraceResult:
    """
    Run one driver's telemetry through the whole pipeline.
    
    Args:
        records: Raw records (mappings with lon, lat, timestamp_ms) or a
                 DataFrame with those columns, in source order.
        stage: Stage from build_stage().
        policy: Time origin policy. Default ROUNDED_START.
        explicit_origin: Start time for the EXPLICIT policy.
        tz: Timezone for naive explicit origins.
        reverse: Whether records are newest first. Default True.
        clamp: Clamping default of the resulting interpolator.
        
    Returns:
        TraceResult with annotated samples, timeline and model.
        
    Raises:
        MalformedInput: If every record is malformed.
        EmptyTrace: If no sample lies in the corridor.
    """
    if isinstance(records, pd.DataFrame):
        ingested = ingest.samples_from_frame(records, reverse=reverse)
    else:
        ingested = ingest.samples_from_records(records, reverse=reverse)

    projected = ingest.project_trace(ingested.samples, stage.epsg)
    on_stage = corridor_mod.filter_trace(projected, stage.corridor)
    if not on_stage:
        raise EmptyTrace(
            f"None of {len(projected)} samples lie within {stage.corridor.margin_m:g} m of the route"
        )

    located = ingest.annotate_distances(on_stage, stage.route)
    timeline = timeline_mod.assign_timeline(located, policy, explicit_origin, tz=tz)
    timed = timeline_mod.apply_timeline(located, timeline)
    model = DistanceTimeInterpolator.from_trace(timed, clamp=clamp)

    logger.info(
        "Trace processed: %d kept, %d malformed, %d off stage, %.1f m covered",
        len(timed), ingested.dropped, len(projected) - len(on_stage), model.max_distance,
    )
    return TraceResult(
        samples=timed,
        timeline=timeline,
        model=model,
        dropped_malformed=ingested.dropped,
        dropped_off_stage=len(projected) - len(on_stage),
    )


def rebase_results(results: Mapping[Hashable, TraceResult]) -> Dict[Hashable, TraceResult]:
    """
    Put several drivers' results on a common time origin.
    
    Every result must carry a FALSE_ORIGIN timeline: each trace is re-timed
    against the latest origin among them and its model rebuilt.
    
    Returns:
        New mapping of rebased results; the inputs are left untouched.
        
    Raises:
        ValueError: If ``results`` is empty or any timeline is not FALSE_ORIGIN.
    """
    rebased_timelines = timeline_mod.rebase_timelines(
        {key: result.timeline for key, result in results.items()}
    )
    rebased = {}
    for key, result in results.items():
        new_timeline = rebased_timelines[key]
        timed = timeline_mod.apply_timeline(result.samples, new_timeline)
        model = DistanceTimeInterpolator.from_trace(timed, clamp=result.model.clamp)
        rebased[key] = replace(result, samples=timed, timeline=new_timeline, model=model)
    return rebased


def trace_to_frame(trace: Sequence[TelemetrySample]) -> pd.DataFrame:
    """
    Annotated trace as a DataFrame for tabular collaborators.
    
    Returns:
        DataFrame with timestamp (UTC datetime), timestamp_ms, lon, lat,
        x_m, y_m, distance_m, elapsed_s.
    """
    df = pd.DataFrame(ingest.trace_to_records(trace))
    if df.empty:
        return df
    df.insert(0, "timestamp", pd.to_datetime(df["timestamp_ms"], unit="ms", utc=True))
    return df
