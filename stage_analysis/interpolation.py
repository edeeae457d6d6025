"""
Distance/Time Interpolation for Rally Stage Analysis

This module builds the two lookup models of a trace: elapsed time at a
distance along the route, and distance along the route at an elapsed time.
Both are piecewise-linear through the retained samples plus an implicit
stage-start anchor at (0 m, 0 s). Neither model extrapolates.
"""

import logging
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np
from scipy.interpolate import interp1d

from .errors import EmptyTrace, OutOfRangeQuery
from . import utils

logger = logging.getLogger(__name__)


class _Linear:
    """One monotone piecewise-linear function over strictly increasing x."""

    def __init__(self, x: np.ndarray, y: np.ndarray, quantity: str):
        self.x = x
        self.y = y
        self.quantity = quantity
        self.domain = (float(x[0]), float(x[-1]))
        if len(x) >= 2:
            self._fn = interp1d(
                x, y, kind="linear", assume_sorted=True,
                bounds_error=False, fill_value=(y[0], y[-1]),
            )
        else:
            self._fn = None

    def __call__(self, query, clamp: bool):
        scalar = np.ndim(query) == 0
        q = np.atleast_1d(np.asarray(query, dtype=float))

        # Clamping has no edge value to give a non-finite query
        bad = ~np.isfinite(q)
        if bad.any():
            raise OutOfRangeQuery(q[bad], self.domain, self.quantity)

        outside = (q < self.domain[0]) | (q > self.domain[1])
        if outside.any() and not clamp:
            raise OutOfRangeQuery(q[outside], self.domain, self.quantity)

        if self._fn is None:
            result = np.full(q.shape, self.y[0], dtype=float)
        else:
            result = np.asarray(self._fn(q), dtype=float)
        return float(result[0]) if scalar else result


class DistanceTimeInterpolator:
    """
    Distance <-> elapsed-time model of one trace.
    
    Before building, the (0, 0) anchor is prepended and every point whose
    distance does not strictly increase on the last kept one is discarded;
    the first occurrence wins. The inverse model is cleaned the same way
    over elapsed time, independently of the forward one.
    
    Args:
        distances: Distance along route per sample, in time order.
        elapsed: Elapsed seconds per sample, aligned with ``distances``.
        clamp: Default for queries outside the sampled range: clamp to the
               edge value instead of raising OutOfRangeQuery.
               
    Raises:
        EmptyTrace: If no sample survives beyond the anchor.
    """

    def __init__(self, distances: Sequence[float], elapsed: Sequence[float],
                 clamp: bool = False):
        d = np.asarray(distances, dtype=float)
        t = np.asarray(elapsed, dtype=float)
        if d.shape != t.shape:
            raise ValueError(f"distances and elapsed differ in length: {d.size} vs {t.size}")
        if d.size == 0:
            raise EmptyTrace("No (distance, elapsed) pairs to interpolate")

        valid = np.isfinite(d) & np.isfinite(t)
        d = np.concatenate(([0.0], d[valid]))
        t = np.concatenate(([0.0], t[valid]))

        _, fwd_d, fwd_t = utils.keep_first_increasing(d, t)
        _, inv_t, inv_d = utils.keep_first_increasing(t, d)

        if fwd_d.size < 2:
            raise EmptyTrace("No sample beyond the stage start to interpolate")

        self.clamp = clamp
        self.samples_used = int(valid.sum())
        self.discarded_forward = int(d.size - fwd_d.size)
        self.discarded_inverse = int(t.size - inv_t.size)
        if self.discarded_forward or self.discarded_inverse:
            logger.info(
                "Discarded out-of-order points: %d by distance, %d by time",
                self.discarded_forward, self.discarded_inverse,
            )

        self._time_at = _Linear(fwd_d, fwd_t, "distance")
        self._distance_at = _Linear(inv_t, inv_d, "time")

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[float, float]],
                   clamp: bool = False) -> "DistanceTimeInterpolator":
        """Build from (distance_m, elapsed_s) pairs in time order."""
        pairs = list(pairs)
        distances = [p[0] for p in pairs]
        elapsed = [p[1] for p in pairs]
        return cls(distances, elapsed, clamp=clamp)

    @classmethod
    def from_trace(cls, trace, clamp: bool = False) -> "DistanceTimeInterpolator":
        """
        Build from annotated samples.
        
        Samples missing distance or elapsed time are skipped.
        
        Raises:
            EmptyTrace: If the trace is empty or nothing in it is annotated.
        """
        pairs = [
            (s.distance_m, s.elapsed_s)
            for s in trace
            if s.distance_m is not None and s.elapsed_s is not None
        ]
        if not pairs:
            raise EmptyTrace("Trace has no samples with distance and elapsed time")
        return cls.from_pairs(pairs, clamp=clamp)

    @property
    def max_distance(self) -> float:
        return self._time_at.domain[1]

    @property
    def max_time(self) -> float:
        return self._distance_at.domain[1]

    @property
    def distance_anchors(self) -> Tuple[np.ndarray, np.ndarray]:
        """(distances, times) the forward model interpolates through."""
        return self._time_at.x.copy(), self._time_at.y.copy()

    @property
    def time_anchors(self) -> Tuple[np.ndarray, np.ndarray]:
        """(times, distances) the inverse model interpolates through."""
        return self._distance_at.x.copy(), self._distance_at.y.copy()

    def time_at_distance(self, distance, clamp: Optional[bool] = None):
        """
        Elapsed seconds at a distance along the route.
        
        Args:
            distance: Meters, scalar or sequence.
            clamp: Override the model's clamping default for this call.
            
        Returns:
            Float for a scalar query, numpy array (same order) for a sequence.
            
        Raises:
            OutOfRangeQuery: Outside [0, max_distance] and not clamping, or
                             not finite (even when clamping).
        """
        return self._time_at(distance, self.clamp if clamp is None else clamp)

    def distance_at_time(self, elapsed, clamp: Optional[bool] = None):
        """
        Distance along the route at an elapsed time.
        
        Args:
            elapsed: Seconds, scalar or sequence.
            clamp: Override the model's clamping default for this call.
            
        Returns:
            Float for a scalar query, numpy array (same order) for a sequence.
            
        Raises:
            OutOfRangeQuery: Outside [0, max_time] and not clamping, or
                             not finite (even when clamping).
        """
        return self._distance_at(elapsed, self.clamp if clamp is None else clamp)

    def __repr__(self) -> str:
        return (f"DistanceTimeInterpolator(max_distance={self.max_distance:.1f}, "
                f"max_time={self.max_time:.1f}, samples={self.samples_used})")
