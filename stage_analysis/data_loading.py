"""
Data Loading for Rally Stage Analysis

Thin readers that hand the core its inputs: telemetry tables from CSV and
the stage route from a GeoJSON (or any file geopandas can read).
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union

import geopandas as gpd
import pandas as pd
from shapely.geometry import LineString, MultiLineString

from . import constants
from .errors import InsufficientRoute, MalformedInput
from .models import GeographicPoint


def find_column(columns: Sequence[str], candidates: Sequence[str]) -> Optional[str]:
    """
    Find the first candidate name present in a set of columns.
    
    Matching ignores case and surrounding whitespace.
    
    Args:
        columns: Column names of the table.
        candidates: Accepted names, in order of preference.
        
    Returns:
        The matching column name as it appears in ``columns``, or None.
    """
    normalised = {str(c).strip().lower(): c for c in columns}
    for name in candidates:
        if name in normalised:
            return normalised[name]
    return None


def load_trace_csv(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load a telemetry CSV into a table with lon, lat and timestamp_ms columns.
    
    Rows are left in file order (newest first for the usual source); the
    reversal happens at ingestion.
    
    Args:
        path: CSV file path.
        
    Returns:
        DataFrame with columns lon, lat, timestamp_ms. Unparseable values
        become NaN and are dropped later by ingestion.
        
    Raises:
        MalformedInput: If a required column cannot be found.
    """
    raw = pd.read_csv(path)

    lon_col = find_column(raw.columns, constants.LON_COLUMNS)
    lat_col = find_column(raw.columns, constants.LAT_COLUMNS)
    ts_col = find_column(raw.columns, constants.TIMESTAMP_COLUMNS)
    missing = [name for name, col in (("lon", lon_col), ("lat", lat_col), ("timestamp", ts_col))
               if col is None]
    if missing:
        raise MalformedInput(f"{path}: no column for {', '.join(missing)}")

    return pd.DataFrame({
        "lon": pd.to_numeric(raw[lon_col], errors="coerce"),
        "lat": pd.to_numeric(raw[lat_col], errors="coerce"),
        "timestamp_ms": pd.to_numeric(raw[ts_col], errors="coerce"),
    })


def load_route_geojson(path: Union[str, Path], feature_index: int = 0,
                       name: Optional[str] = None,
                       name_field: str = "name") -> List[GeographicPoint]:
    """
    Load one stage route from a route collection file.
    
    Args:
        path: GeoJSON (or other geopandas-readable) file of route features.
        feature_index: Which feature to use when no name is given. Default 0.
        name: Select the feature whose ``name_field`` equals this instead.
        name_field: Property holding feature names. Default "name".
        
    Returns:
        Route vertices as geographic points, Z values dropped.
        
    Raises:
        ValueError: If the requested feature does not exist.
        InsufficientRoute: If the feature is not a line geometry.
    """
    gdf = gpd.read_file(path)
    if gdf.crs is not None:
        gdf = gdf.to_crs(constants.GEOGRAPHIC_CRS)

    if name is not None:
        if name_field not in gdf.columns:
            raise ValueError(f"{path}: no '{name_field}' property to select by")
        matches = gdf[gdf[name_field] == name]
        if matches.empty:
            raise ValueError(f"{path}: no route feature named {name!r}")
        geometry = matches.geometry.iloc[0]
    else:
        if not 0 <= feature_index < len(gdf):
            raise ValueError(f"{path}: feature {feature_index} out of range (0..{len(gdf) - 1})")
        geometry = gdf.geometry.iloc[feature_index]

    return geometry_to_points(geometry)


def geometry_to_points(geometry) -> List[GeographicPoint]:
    """
    Vertices of a line geometry as geographic points.
    
    MultiLineString parts are joined in order.
    """
    if isinstance(geometry, LineString):
        coords = list(geometry.coords)
    elif isinstance(geometry, MultiLineString):
        coords = [c for line in geometry.geoms for c in line.coords]
    else:
        kind = geometry.geom_type if geometry is not None else "empty"
        raise InsufficientRoute(f"Route feature is {kind}, not a line")

    # Keep lon/lat, drop any Z component
    return [GeographicPoint(float(c[0]), float(c[1])) for c in coords]
