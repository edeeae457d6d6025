"""
Value Types for Rally Stage Analysis

Immutable records passed between the pipeline stages. Updating a sample
means building a new one with ``dataclasses.replace``.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

if TYPE_CHECKING:
    from .interpolation import DistanceTimeInterpolator


@dataclass(frozen=True)
class GeographicPoint:
    """Longitude/latitude in degrees, geographic CRS."""
    lon: float
    lat: float


@dataclass(frozen=True)
class PlanarPoint:
    """Easting/northing in meters within one UTM zone."""
    x: float
    y: float
    epsg: int


@dataclass(frozen=True)
class TelemetrySample:
    """One GPS reading and whatever the pipeline has derived for it so far."""
    geo: GeographicPoint
    timestamp_ms: float
    planar: Optional[PlanarPoint] = None
    distance_m: Optional[float] = None
    elapsed_s: Optional[float] = None

    def with_planar(self, planar: PlanarPoint) -> "TelemetrySample":
        return replace(self, planar=planar)

    def with_distance(self, distance_m: float) -> "TelemetrySample":
        return replace(self, distance_m=float(distance_m))

    def with_elapsed(self, elapsed_s: float) -> "TelemetrySample":
        return replace(self, elapsed_s=float(elapsed_s))


Trace = Tuple[TelemetrySample, ...]


class TimelinePolicy(Enum):
    """How the time origin of a trace was chosen."""
    EXPLICIT = "explicit"
    ROUNDED_START = "rounded_start"
    FALSE_ORIGIN = "false_origin"


@dataclass(frozen=True)
class Timeline:
    """A time origin (epoch ms) and the policy that produced it."""
    origin_ms: float
    policy: TimelinePolicy


@dataclass(frozen=True)
class IngestResult:
    """Samples that survived ingestion, plus how many records were dropped."""
    samples: Trace
    dropped: int = 0

    @property
    def total(self) -> int:
        return len(self.samples) + self.dropped


@dataclass(frozen=True)
class TraceResult:
    """
    Everything the pipeline derives for one driver's trace.
    
    Attributes:
        samples: In-corridor samples with planar point, distance and elapsed time.
        timeline: The time origin applied to ``samples``.
        model: Distance/time interpolator built from ``samples``.
        dropped_malformed: Records dropped at ingestion.
        dropped_off_stage: Samples outside the corridor.
    """
    samples: Trace
    timeline: Timeline
    model: "DistanceTimeInterpolator" = field(repr=False)
    dropped_malformed: int = 0
    dropped_off_stage: int = 0
