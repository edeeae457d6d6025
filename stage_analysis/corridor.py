"""
Stage Corridor for Rally Stage Analysis

This module buffers the route into a corridor polygon and uses it to keep
only the telemetry samples that plausibly belong to the stage. Where the
corridor overlaps another road near a junction, samples on that road are
kept too.
"""

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

import geopandas as gpd
import pandas as pd
import shapely
from shapely.geometry import Point
from shapely.geometry.base import BaseGeometry

from . import constants
from .errors import MalformedInput
from .models import PlanarPoint, TelemetrySample
from .route import Route

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Corridor:
    """Buffered route polygon, used only as a membership test."""
    polygon: BaseGeometry
    margin_m: float
    epsg: int

    def contains(self, point: PlanarPoint) -> bool:
        """True when the point is inside the corridor or on its boundary."""
        if point.epsg != self.epsg:
            raise ValueError(
                f"Point is in EPSG:{point.epsg} but corridor is in EPSG:{self.epsg}"
            )
        return self.polygon.covers(Point(point.x, point.y))


def build_corridor(route: Route, margin_m: float = constants.CORRIDOR_MARGIN_M) -> Corridor:
    """
    Buffer the route into a corridor polygon.
    
    Offsets the route line by ``margin_m`` on both sides with round end caps.
    
    Args:
        route: Stage route.
        margin_m: Corridor half-width in meters. Default CORRIDOR_MARGIN_M.
        
    Returns:
        Corridor in the route's zone.
        
    Raises:
        ValueError: If margin_m is not positive.
    """
    if margin_m <= 0:
        raise ValueError(f"Corridor margin must be positive, got {margin_m}")
    polygon = route.line.buffer(margin_m)
    # Prepared in place so repeated covers() tests are cheap
    shapely.prepare(polygon)
    return Corridor(polygon=polygon, margin_m=float(margin_m), epsg=route.epsg)


def filter_trace(trace: Sequence[TelemetrySample],
                 corridor: Corridor) -> Tuple[TelemetrySample, ...]:
    """
    Keep the samples whose planar point lies in the corridor.
    
    Args:
        trace: Samples with planar points, in time order.
        corridor: Corridor from build_corridor().
        
    Returns:
        The in-corridor samples, in their original order.
        
    Raises:
        MalformedInput: If a sample has no planar point. Samples without
                        coordinates must be dropped at ingestion.
    """
    kept = []
    for idx, sample in enumerate(trace):
        if sample.planar is None:
            raise MalformedInput(f"Sample {idx} has no planar coordinates")
        if corridor.contains(sample.planar):
            kept.append(sample)

    dropped = len(trace) - len(kept)
    if dropped:
        logger.info("Corridor filter dropped %d of %d samples", dropped, len(trace))
    return tuple(kept)


def filter_frame(df: pd.DataFrame, corridor: Corridor,
                 x_col: str = "x_m", y_col: str = "y_m") -> pd.DataFrame:
    """
    DataFrame version of filter_trace().
    
    Args:
        df: Table with planar coordinates in the corridor's zone.
        corridor: Corridor from build_corridor().
        x_col: Column holding eastings. Default "x_m".
        y_col: Column holding northings. Default "y_m".
        
    Returns:
        Copy of the in-corridor rows, original order and index kept.
    """
    if df.empty:
        return df.copy()
    points = gpd.GeoSeries(
        gpd.points_from_xy(df[x_col], df[y_col]),
        index=df.index,
        crs=f"EPSG:{corridor.epsg}",
    )
    mask = points.covered_by(corridor.polygon)
    return df.loc[mask].copy()
