"""
Constants for Rally Stage Analysis

This module defines the configuration constants used throughout the stage
analysis pipeline: coordinate reference systems, time interpretation,
corridor sizing, split spacing and the column names of telemetry tables.
"""

# Geographic CRS of incoming telemetry and route geometry (WGS84 lon/lat)
GEOGRAPHIC_CRS = "EPSG:4326"

# Timezone used to interpret naive wall-clock start times
DEFAULT_TIMEZONE = "UTC"

# Half-width of the on-stage corridor around the route
CORRIDOR_MARGIN_M = 100.0

# Spacing of notional split points along the route
SPLIT_INTERVAL_M = 500.0

MS_PER_SECOND = 1000.0
MS_PER_MINUTE = 60_000

# EPSG code bases for UTM zones on WGS84
UTM_NORTH_BASE = 32600
UTM_SOUTH_BASE = 32700

# Accepted source column names, first match wins
LON_COLUMNS = ("lon", "longitude", "lng", "long")
LAT_COLUMNS = ("lat", "latitude")
TIMESTAMP_COLUMNS = ("timestamp_ms", "utx", "utc", "timestamp", "time")
