"""
Utility Functions for Rally Stage Analysis

This module provides helper functions for data conversion, rounding, and
ordering checks used throughout the analysis pipeline.
"""

import numpy as np
from typing import Optional, Sequence

from .errors import NonMonotonicData


def safe_float(value) -> float:
    """
    Safely convert a value to float, returning NaN on failure.
    
    Args:
        value: Value to convert (string, number, etc.).
        
    Returns:
        Float value, or np.nan if conversion fails.
    """
    try:
        return float(value)
    except (TypeError, ValueError):
        return np.nan


def is_missing(value) -> bool:
    """Return True for None, NaN, or anything that does not parse as a finite float."""
    number = safe_float(value)
    return not bool(np.isfinite(number))


def round_float(value, digits: int = 3) -> Optional[float]:
    """
    Round a float value, handling None, NaN, and Inf.
    
    Args:
        value: Value to round.
        digits: Number of decimal places. Default 3.
        
    Returns:
        Rounded float, or None if value is None, NaN, or Inf.
    """
    if value is None or (isinstance(value, float) and (np.isnan(value) or np.isinf(value))):
        return None
    return round(float(value), digits)


def require_monotonic(values: Sequence[float], name: str = "values") -> None:
    """
    Check that a sequence is strictly increasing.
    
    Args:
        values: Sequence to check.
        name: Label used in the error message.
        
    Raises:
        NonMonotonicData: At the first position that does not increase.
    """
    arr = np.asarray(values, dtype=float)
    if arr.size < 2:
        return
    bad = np.flatnonzero(np.diff(arr) <= 0)
    if bad.size:
        idx = int(bad[0]) + 1
        raise NonMonotonicData(
            f"{name} not strictly increasing at index {idx}: "
            f"{arr[idx - 1]:g} -> {arr[idx]:g}"
        )


def keep_first_increasing(x: np.ndarray, *others: np.ndarray):
    """
    Drop every point whose x is not strictly greater than the last kept x.
    
    The first occurrence always wins; later duplicates and reversals are
    discarded along with the matching entries of ``others``.
    
    Args:
        x: Independent variable, in input order.
        *others: Arrays aligned with ``x``.
        
    Returns:
        Tuple of (mask, x_kept, *others_kept).
    """
    x = np.asarray(x, dtype=float)
    if x.size == 0:
        mask = np.zeros(0, dtype=bool)
    else:
        # running max of everything before each point
        prior_max = np.concatenate(([-np.inf], np.maximum.accumulate(x)[:-1]))
        mask = x > prior_max
    kept = [np.asarray(o)[mask] for o in others]
    return (mask, x[mask], *kept)
