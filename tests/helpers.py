"""
Plain helpers shared by the test modules.
"""

from stage_analysis.models import GeographicPoint, PlanarPoint, TelemetrySample

# Planar zone used for synthetic routes (UTM 30N, Wales)
EPSG = 32630

# Base timestamp: 2024-05-18 10:30:47 UTC
BASE_MS = 1716028247000.0


def planar(x, y, epsg=EPSG):
    return PlanarPoint(float(x), float(y), epsg)


def sample_at(x, y, timestamp_ms, epsg=EPSG):
    """Sample with a planar point and a dummy geographic point."""
    return TelemetrySample(
        geo=GeographicPoint(-3.5, 52.3),
        timestamp_ms=float(timestamp_ms),
        planar=planar(x, y, epsg),
    )
