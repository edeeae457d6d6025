"""
Notional Splits for Rally Stage Analysis

This module places synthetic split points at fixed distances along the
route and reads each driver's time at them from their interpolation model,
giving split-time tables without official timing.
"""

import logging
from typing import Dict, Hashable, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from . import constants
from . import utils
from .interpolation import DistanceTimeInterpolator

logger = logging.getLogger(__name__)


def split_distances(total_length: float,
                    interval_m: float = constants.SPLIT_INTERVAL_M) -> np.ndarray:
    """
    Distances of notional split points along a route.
    
    Args:
        total_length: Route length in meters.
        interval_m: Spacing between splits. Default SPLIT_INTERVAL_M.
        
    Returns:
        Array of split distances from interval_m up to total_length
        (inclusive when it falls exactly on a multiple).
        
    Raises:
        ValueError: If interval_m is not positive.
    """
    if interval_m <= 0:
        raise ValueError(f"Split interval must be positive, got {interval_m}")
    # Tolerate sub-millimetre shortfall from reprojection
    count = int(np.floor(total_length / interval_m + 1e-6))
    return interval_m * np.arange(1, count + 1, dtype=float)


def split_times(model: DistanceTimeInterpolator, distances: Sequence[float],
                clamp: bool = False) -> pd.DataFrame:
    """
    Time at each split point for one trace.
    
    Splits beyond what the trace covered are left out instead of failing
    the whole table, unless clamping is requested.
    
    Args:
        model: Interpolator of the trace.
        distances: Split distances in meters.
        clamp: Clamp out-of-range splits to the edge time. Default False.
        
    Returns:
        DataFrame with columns split, distance_m, elapsed_s, sector_s.
        
    Raises:
        NonMonotonicData: If the split distances are not strictly increasing.
    """
    utils.require_monotonic(distances, "split distances")
    d = np.asarray(distances, dtype=float)
    if not clamp:
        covered = (d >= 0) & (d <= model.max_distance)
        if not covered.all():
            logger.info("%d split(s) beyond the %.1f m covered by the trace",
                        int((~covered).sum()), model.max_distance)
        d = d[covered]

    elapsed = model.time_at_distance(d, clamp=clamp) if d.size else np.zeros(0)
    df = pd.DataFrame({
        "split": np.arange(1, d.size + 1),
        "distance_m": d,
        "elapsed_s": elapsed,
    })
    df["sector_s"] = df["elapsed_s"].diff().fillna(df["elapsed_s"])
    return df


def compare_split_times(models: Mapping[Hashable, DistanceTimeInterpolator],
                        distances: Sequence[float],
                        digits: Optional[int] = 3) -> pd.DataFrame:
    """
    Split times of several drivers side by side.
    
    For each split the fastest driver who reached it is the reference;
    every driver gets a delta column against that time.
    
    Args:
        models: Interpolator per driver. Timelines must share an origin
                policy that makes elapsed times comparable.
        distances: Split distances in meters.
        digits: Rounding for the output, None to keep full precision.
        
    Returns:
        DataFrame indexed by distance_m with one time column per driver,
        "best_s", and one "<driver>_delta_s" column per driver. Splits a
        driver did not reach are NaN.
        
    Raises:
        ValueError: If a driver key collides with a derived column name.
    """
    utils.require_monotonic(distances, "split distances")
    reserved = {"best_s"} | {f"{driver}_delta_s" for driver in models}
    clashing = sorted(str(driver) for driver in models if str(driver) in reserved)
    if clashing:
        raise ValueError(f"Driver keys clash with derived columns: {', '.join(clashing)}")
    d = np.asarray(distances, dtype=float)
    columns: Dict[Hashable, np.ndarray] = {}

    for driver, model in models.items():
        times = np.full(d.shape, np.nan)
        covered = (d >= 0) & (d <= model.max_distance)
        if covered.any():
            times[covered] = model.time_at_distance(d[covered])
        columns[driver] = times

    df = pd.DataFrame(columns, index=pd.Index(d, name="distance_m"))
    df["best_s"] = df[list(models.keys())].min(axis=1)
    for driver in models:
        df[f"{driver}_delta_s"] = df[driver] - df["best_s"]

    if digits is not None:
        df = df.round(digits)
    return df
