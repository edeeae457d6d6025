"""
Geographic <-> Planar Projection for Rally Stage Analysis

This module selects a UTM zone for a location and converts points between
the geographic CRS and that zone using pyproj.
"""

import math
from functools import lru_cache
from typing import Tuple

import numpy as np
from pyproj import Transformer

from . import constants
from .models import GeographicPoint, PlanarPoint


def zone_for(point: GeographicPoint) -> int:
    """
    Select the UTM zone EPSG code for a geographic point.
    
    Zone number is floor((lon + 180) / 6) mod 60 + 1. The hemisphere is
    chosen from the sign of the longitude, not the latitude.
    
    TODO: hemisphere should follow latitude; switching changes every
    southern/western distance so it needs a compatibility flag first.
    
    Args:
        point: Geographic point in degrees.
        
    Returns:
        EPSG code, 326xx for "north" and 327xx for "south".
    """
    zone = int(math.floor((point.lon + 180.0) / 6.0)) % 60 + 1
    base = constants.UTM_NORTH_BASE if point.lon > 0 else constants.UTM_SOUTH_BASE
    return base + zone


@lru_cache(maxsize=None)
def _transformer(src: str, dst: str) -> Transformer:
    return Transformer.from_crs(src, dst, always_xy=True)


def _forward(epsg: int) -> Transformer:
    return _transformer(constants.GEOGRAPHIC_CRS, f"EPSG:{epsg}")


def _inverse(epsg: int) -> Transformer:
    return _transformer(f"EPSG:{epsg}", constants.GEOGRAPHIC_CRS)


def to_planar(point: GeographicPoint, zone: int) -> PlanarPoint:
    """
    Project a geographic point into the given UTM zone.
    
    Args:
        point: Geographic point in degrees.
        zone: EPSG code from zone_for().
        
    Returns:
        PlanarPoint in meters tagged with the zone code.
    """
    x, y = _forward(zone).transform(point.lon, point.lat)
    return PlanarPoint(float(x), float(y), zone)


def to_geographic(point: PlanarPoint, zone: int) -> GeographicPoint:
    """
    Convert a planar point in the given UTM zone back to lon/lat.
    
    Args:
        point: Planar point in meters.
        zone: EPSG code the point is expressed in.
        
    Returns:
        GeographicPoint in degrees.
        
    Raises:
        ValueError: If the point is tagged with a different zone.
    """
    if point.epsg != zone:
        raise ValueError(f"Point is in EPSG:{point.epsg}, not EPSG:{zone}")
    lon, lat = _inverse(zone).transform(point.x, point.y)
    return GeographicPoint(float(lon), float(lat))


def to_planar_arrays(lons, lats, zone: int) -> Tuple[np.ndarray, np.ndarray]:
    """Vectorised to_planar over coordinate arrays; non-finite in, non-finite out."""
    x, y = _forward(zone).transform(
        np.asarray(lons, dtype=float), np.asarray(lats, dtype=float)
    )
    return np.asarray(x, dtype=float), np.asarray(y, dtype=float)
