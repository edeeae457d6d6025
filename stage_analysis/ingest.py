"""
Telemetry Ingestion for Rally Stage Analysis

This module turns raw telemetry records into ordered TelemetrySample traces
and attaches the per-sample geometry the later stages need: planar
coordinates and distance along the route.
"""

import logging
from typing import Dict, Iterable, Mapping, Sequence, Tuple

import pandas as pd

from . import projection
from . import utils
from .errors import MalformedInput
from .models import GeographicPoint, IngestResult, TelemetrySample
from .route import Route

logger = logging.getLogger(__name__)


def parse_record(record: Mapping) -> TelemetrySample:
    """
    Build a sample from one raw record.
    
    Args:
        record: Mapping with "lon", "lat" and "timestamp_ms" entries.
        
    Returns:
        TelemetrySample with only the geographic point and timestamp set.
        
    Raises:
        MalformedInput: If any of the three values is missing or not a
                        finite number, or the coordinates are out of range.
    """
    lon = utils.safe_float(record.get("lon"))
    lat = utils.safe_float(record.get("lat"))
    ts = utils.safe_float(record.get("timestamp_ms"))

    if utils.is_missing(lon) or utils.is_missing(lat):
        raise MalformedInput(f"Missing coordinates in record: {dict(record)}")
    if utils.is_missing(ts):
        raise MalformedInput(f"Missing timestamp in record: {dict(record)}")
    if not (-180.0 <= lon <= 180.0 and -90.0 <= lat <= 90.0):
        raise MalformedInput(f"Coordinates out of range: lon={lon}, lat={lat}")

    return TelemetrySample(geo=GeographicPoint(lon, lat), timestamp_ms=ts)


def samples_from_records(records: Iterable[Mapping], reverse: bool = True) -> IngestResult:
    """
    Convert raw telemetry records into a chronological trace.
    
    Records arrive newest first, so they are reversed before anything else.
    Malformed records are dropped and counted; the survivors are then
    stable-sorted by timestamp.
    
    Args:
        records: Raw records (see parse_record()).
        reverse: Whether the source is reverse-chronological. Default True.
        
    Returns:
        IngestResult with the trace and the number of dropped records.
        
    Raises:
        MalformedInput: If every record was dropped.
    """
    records = list(records)
    if reverse:
        records.reverse()

    samples = []
    dropped = 0
    for record in records:
        try:
            samples.append(parse_record(record))
        except MalformedInput as exc:
            dropped += 1
            logger.debug("Dropping record: %s", exc)

    if records and not samples:
        raise MalformedInput(f"All {len(records)} telemetry records were malformed")

    if dropped:
        logger.info("Dropped %d of %d malformed telemetry records", dropped, len(records))

    samples.sort(key=lambda s: s.timestamp_ms)
    return IngestResult(samples=tuple(samples), dropped=dropped)


def samples_from_frame(df: pd.DataFrame, reverse: bool = True) -> IngestResult:
    """
    DataFrame version of samples_from_records().
    
    Args:
        df: Table with "lon", "lat" and "timestamp_ms" columns, in source order.
        reverse: Whether the source is reverse-chronological. Default True.
    """
    missing = [c for c in ("lon", "lat", "timestamp_ms") if c not in df.columns]
    if missing:
        raise MalformedInput(f"Telemetry table is missing columns: {missing}")
    return samples_from_records(df.to_dict("records"), reverse=reverse)


def project_trace(trace: Sequence[TelemetrySample], zone: int) -> Tuple[TelemetrySample, ...]:
    """Attach planar coordinates in ``zone`` to every sample."""
    return tuple(s.with_planar(projection.to_planar(s.geo, zone)) for s in trace)


def annotate_distances(trace: Sequence[TelemetrySample], route: Route) -> Tuple[TelemetrySample, ...]:
    """
    Attach distance along the route to every sample.
    
    Samples without planar coordinates are projected into the route's zone
    first.
    """
    annotated = []
    for sample in trace:
        if sample.planar is None:
            sample = sample.with_planar(projection.to_planar(sample.geo, route.epsg))
        annotated.append(sample.with_distance(route.project_distance(sample.planar)))
    return tuple(annotated)


def trace_to_records(trace: Sequence[TelemetrySample]) -> list:
    """
    Flatten a trace into plain dictionaries for tabular export.
    
    Returns:
        List of dictionaries with timestamp_ms, lon, lat, x_m, y_m,
        distance_m and elapsed_s (None where not yet derived).
    """
    records = []
    for sample in trace:
        record: Dict = {
            "timestamp_ms": sample.timestamp_ms,
            "lon": sample.geo.lon,
            "lat": sample.geo.lat,
            "x_m": sample.planar.x if sample.planar else None,
            "y_m": sample.planar.y if sample.planar else None,
            "distance_m": utils.round_float(sample.distance_m, 2),
            "elapsed_s": utils.round_float(sample.elapsed_s, 3),
        }
        records.append(record)
    return records
