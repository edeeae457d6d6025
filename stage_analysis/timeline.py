"""
Trace Timelines for Rally Stage Analysis

This module chooses the time origin of a trace and turns sample timestamps
into elapsed seconds into the stage. There is no start signal in the
telemetry itself, so the origin comes from one of three policies:

- EXPLICIT: a start time resolved elsewhere (e.g. an official start list).
- ROUNDED_START: the first sample's time rounded to the minute, since cars
  are released on the minute.
- FALSE_ORIGIN: the first sample's own time. Elapsed times are then only
  relative; use rebase_timelines() before comparing drivers.
"""

import logging
import numbers
from datetime import datetime
from typing import Dict, Hashable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from . import constants
from .errors import EmptyTrace
from .models import TelemetrySample, Timeline, TimelinePolicy

logger = logging.getLogger(__name__)

OriginLike = Union[float, int, str, datetime, pd.Timestamp]


def to_epoch_ms(value: OriginLike, tz: str = constants.DEFAULT_TIMEZONE) -> float:
    """
    Normalise a time value to epoch milliseconds.
    
    Args:
        value: Epoch milliseconds, or a datetime / ISO string. Naive
               wall-clock values are interpreted in ``tz``.
        tz: Timezone name. Default DEFAULT_TIMEZONE.
        
    Returns:
        Epoch milliseconds as a float.
    """
    # numpy scalars register as numbers.Real too
    if isinstance(value, numbers.Real) and not isinstance(value, (bool, np.bool_)):
        return float(value)
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        ts = ts.tz_localize(tz)
    return ts.value / 1e6


def round_to_minute(timestamp_ms: float) -> float:
    """Round epoch milliseconds to the nearest whole minute (halves go up)."""
    minutes = int((timestamp_ms + constants.MS_PER_MINUTE / 2) // constants.MS_PER_MINUTE)
    return float(minutes * constants.MS_PER_MINUTE)


def assign_timeline(trace: Sequence[TelemetrySample], policy: TimelinePolicy,
                    explicit_origin: Optional[OriginLike] = None,
                    tz: str = constants.DEFAULT_TIMEZONE) -> Timeline:
    """
    Choose the time origin for a trace.
    
    Args:
        trace: Retained samples in time order.
        policy: Which origin policy to apply.
        explicit_origin: Start time for EXPLICIT; ignored otherwise.
        tz: Timezone for naive explicit origins. Default DEFAULT_TIMEZONE.
        
    Returns:
        Timeline with the chosen origin.
        
    Raises:
        ValueError: EXPLICIT without an explicit_origin.
        EmptyTrace: ROUNDED_START or FALSE_ORIGIN on an empty trace.
    """
    policy = TimelinePolicy(policy)

    if policy is TimelinePolicy.EXPLICIT:
        if explicit_origin is None:
            raise ValueError("EXPLICIT timeline needs an explicit origin")
        return Timeline(to_epoch_ms(explicit_origin, tz), policy)

    if not trace:
        raise EmptyTrace(f"Cannot assign a {policy.name} timeline to an empty trace")

    first_ms = float(trace[0].timestamp_ms)
    if policy is TimelinePolicy.ROUNDED_START:
        return Timeline(round_to_minute(first_ms), policy)
    return Timeline(first_ms, policy)


def elapsed_seconds(timeline: Timeline, sample: TelemetrySample) -> float:
    """Seconds from the timeline origin to the sample; negative if before it."""
    return (float(sample.timestamp_ms) - timeline.origin_ms) / constants.MS_PER_SECOND


def apply_timeline(trace: Sequence[TelemetrySample],
                   timeline: Timeline) -> Tuple[TelemetrySample, ...]:
    """
    Attach elapsed seconds to every sample of a trace.
    
    Samples before the origin get negative elapsed times; they are kept and
    counted in the log rather than treated as errors.
    """
    timed = tuple(s.with_elapsed(elapsed_seconds(timeline, s)) for s in trace)
    early = sum(1 for s in timed if s.elapsed_s < 0)
    if early:
        logger.warning("%d sample(s) precede the %s origin", early, timeline.policy.name)
    return timed


def rebase_timelines(timelines: Mapping[Hashable, Timeline]) -> Dict[Hashable, Timeline]:
    """
    Move a set of timelines onto a common origin.
    
    Every timeline is moved to the latest origin among them, the point at
    which all compared traces have started. Only FALSE_ORIGIN timelines are
    relative enough to move; EXPLICIT and ROUNDED_START origins are already
    times into the stage.
    
    Args:
        timelines: Timeline per driver (or any key).
        
    Returns:
        New mapping with the same keys and policies and the common origin.
        
    Raises:
        ValueError: If ``timelines`` is empty or holds a timeline whose
                    policy is not FALSE_ORIGIN.
    """
    if not timelines:
        raise ValueError("No timelines to rebase")
    fixed = sorted(str(key) for key, t in timelines.items()
                   if t.policy is not TimelinePolicy.FALSE_ORIGIN)
    if fixed:
        raise ValueError(f"Only FALSE_ORIGIN timelines can be rebased: {', '.join(fixed)}")
    common = max(t.origin_ms for t in timelines.values())
    return {key: Timeline(common, t.policy) for key, t in timelines.items()}
