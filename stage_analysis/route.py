"""
Route Model for Rally Stage Analysis

This module holds the stage route as a planar polyline and answers the two
questions the rest of the pipeline asks of it: how far along the route is
the point nearest to X, and where on the route is distance D.
"""

import logging
from typing import Iterable, List, Optional, Sequence

import numpy as np
from shapely.geometry import LineString

from .errors import InsufficientRoute
from .models import GeographicPoint, PlanarPoint
from . import projection

logger = logging.getLogger(__name__)


class Route:
    """
    Stage route polyline in a UTM zone.
    
    Points are in the order the stage is driven. The route is read-only once
    built, so one instance can be shared by every trace of the stage.
    
    Args:
        points: Ordered planar points, all in the same zone.
        
    Raises:
        InsufficientRoute: Fewer than two points, or zero total length.
        ValueError: Points from more than one zone.
    """

    def __init__(self, points: Sequence[PlanarPoint]):
        points = tuple(points)
        if len(points) < 2:
            raise InsufficientRoute(f"Route needs at least two points, got {len(points)}")

        zones = {p.epsg for p in points}
        if len(zones) != 1:
            raise ValueError(f"Route points span several zones: {sorted(zones)}")

        self._points = points
        self._epsg = points[0].epsg
        self._xy = np.array([(p.x, p.y) for p in points], dtype=float)

        # Segment start points, direction vectors and lengths
        self._starts = self._xy[:-1]
        self._vectors = self._xy[1:] - self._xy[:-1]
        self._seg_len_sq = np.einsum("ij,ij->i", self._vectors, self._vectors)
        self._seg_len = np.sqrt(self._seg_len_sq)
        self._cumulative = np.concatenate(([0.0], np.cumsum(self._seg_len)))

        if self._cumulative[-1] <= 0:
            raise InsufficientRoute("Route has zero length")

        self._line = LineString(self._xy)

    @classmethod
    def from_geographic(cls, points: Iterable[GeographicPoint],
                        zone: Optional[int] = None) -> "Route":
        """
        Build a route from geographic points.
        
        Args:
            points: Ordered lon/lat points of the stage.
            zone: EPSG code to project into. Defaults to the zone of the
                  first point.
                  
        Returns:
            Route in the chosen zone.
        """
        points = list(points)
        if len(points) < 2:
            raise InsufficientRoute(f"Route needs at least two points, got {len(points)}")
        if zone is None:
            zone = projection.zone_for(points[0])
        planar = [projection.to_planar(p, zone) for p in points]
        route = cls(planar)
        logger.info("Route built in EPSG:%d, %d points, %.1f m",
                    zone, len(planar), route.total_length)
        return route

    @property
    def points(self) -> tuple:
        return self._points

    @property
    def epsg(self) -> int:
        return self._epsg

    @property
    def total_length(self) -> float:
        return float(self._cumulative[-1])

    @property
    def line(self) -> LineString:
        """Shapely view of the route, used for buffering and interpolation."""
        return self._line

    def project_distance(self, point: PlanarPoint) -> float:
        """
        Distance along the route of the route point nearest to ``point``.
        
        Each segment gets the perpendicular foot of ``point`` clamped to its
        ends; the segment with the smallest point-to-foot distance wins, the
        earliest one on ties.
        
        Args:
            point: Planar point in the route's zone.
            
        Returns:
            Meters from the start of the route.
        """
        self._check_zone(point)
        q = np.array([point.x, point.y], dtype=float)

        rel = q - self._starts
        dots = np.einsum("ij,ij->i", rel, self._vectors)
        # Degenerate (repeated-vertex) segments project onto their start
        with np.errstate(divide="ignore", invalid="ignore"):
            t = np.where(self._seg_len_sq > 0, dots / self._seg_len_sq, 0.0)
        t = np.clip(t, 0.0, 1.0)

        feet = self._starts + t[:, None] * self._vectors
        offsets = np.hypot(feet[:, 0] - q[0], feet[:, 1] - q[1])

        # argmin returns the first minimum, i.e. the earliest segment
        best = int(np.argmin(offsets))
        return float(self._cumulative[best] + t[best] * self._seg_len[best])

    def project_distances(self, points: Iterable[PlanarPoint]) -> List[float]:
        return [self.project_distance(p) for p in points]

    def point_at(self, distance: float) -> PlanarPoint:
        """
        Planar point at ``distance`` meters along the route.
        
        Distances outside [0, total_length] clamp to the route ends.
        """
        d = min(max(float(distance), 0.0), self.total_length)
        # Shapely clamps to the ends and interpolates within the segment
        pt = self._line.interpolate(d)
        return PlanarPoint(float(pt.x), float(pt.y), self._epsg)

    def _check_zone(self, point: PlanarPoint) -> None:
        if point.epsg != self._epsg:
            raise ValueError(
                f"Point is in EPSG:{point.epsg} but route is in EPSG:{self._epsg}"
            )

    def __len__(self) -> int:
        return len(self._points)

    def __repr__(self) -> str:
        return f"Route(epsg={self._epsg}, points={len(self._points)}, length={self.total_length:.1f})"
