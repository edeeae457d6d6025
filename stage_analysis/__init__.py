"""
Rally Stage Analysis

This package projects sparse GPS telemetry onto a rally stage route,
assigns elapsed times, and builds distance/time interpolation models so
drivers can be compared at notional split points along the stage.

The public API is re-exported here from the individual modules.
"""

# Import constants
from .constants import (
    GEOGRAPHIC_CRS,
    DEFAULT_TIMEZONE,
    CORRIDOR_MARGIN_M,
    SPLIT_INTERVAL_M,
)

# Import errors
from .errors import (
    StageAnalysisError,
    MalformedInput,
    InsufficientRoute,
    EmptyTrace,
    NonMonotonicData,
    OutOfRangeQuery,
)

# Import value types
from .models import (
    GeographicPoint,
    PlanarPoint,
    TelemetrySample,
    TimelinePolicy,
    Timeline,
    IngestResult,
    TraceResult,
)

# Import projection functions
from .projection import (
    zone_for,
    to_planar,
    to_geographic,
    to_planar_arrays,
)

# Import route model
from .route import Route

# Import corridor functions
from .corridor import (
    Corridor,
    build_corridor,
    filter_trace,
    filter_frame,
)

# Import ingestion functions
from .ingest import (
    parse_record,
    samples_from_records,
    samples_from_frame,
    project_trace,
    annotate_distances,
)

# Import timeline functions
from .timeline import (
    assign_timeline,
    apply_timeline,
    elapsed_seconds,
    rebase_timelines,
)

# Import interpolation
from .interpolation import DistanceTimeInterpolator

# Import split functions
from .splits import (
    split_distances,
    split_times,
    compare_split_times,
)

# Import data loading functions
from .data_loading import (
    load_trace_csv,
    load_route_geojson,
)

# Import session builder functions
from .session import (
    Stage,
    build_stage,
    process_trace,
    rebase_results,
    trace_to_frame,
)

__all__ = [
    # Constants
    "GEOGRAPHIC_CRS",
    "DEFAULT_TIMEZONE",
    "CORRIDOR_MARGIN_M",
    "SPLIT_INTERVAL_M",
    # Errors
    "StageAnalysisError",
    "MalformedInput",
    "InsufficientRoute",
    "EmptyTrace",
    "NonMonotonicData",
    "OutOfRangeQuery",
    # Value types
    "GeographicPoint",
    "PlanarPoint",
    "TelemetrySample",
    "TimelinePolicy",
    "Timeline",
    "IngestResult",
    "TraceResult",
    # Projection
    "zone_for",
    "to_planar",
    "to_geographic",
    "to_planar_arrays",
    # Route
    "Route",
    # Corridor
    "Corridor",
    "build_corridor",
    "filter_trace",
    "filter_frame",
    # Ingestion
    "parse_record",
    "samples_from_records",
    "samples_from_frame",
    "project_trace",
    "annotate_distances",
    # Timeline
    "assign_timeline",
    "apply_timeline",
    "elapsed_seconds",
    "rebase_timelines",
    # Interpolation
    "DistanceTimeInterpolator",
    # Splits
    "split_distances",
    "split_times",
    "compare_split_times",
    # Data loading
    "load_trace_csv",
    "load_route_geojson",
    # Session builder
    "Stage",
    "build_stage",
    "process_trace",
    "rebase_results",
    "trace_to_frame",
]
