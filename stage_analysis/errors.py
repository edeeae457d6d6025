"""
Error Types for Rally Stage Analysis

Every error is a ValueError so callers that only guard against bad data
keep working; the subclasses let them tell the failure modes apart.
"""

from typing import Sequence, Tuple


class StageAnalysisError(Exception):
    """Base class for all stage analysis errors."""


class MalformedInput(StageAnalysisError, ValueError):
    """Coordinates or timestamps missing or unparseable.

    Raised per trace only when every record had to be dropped; single bad
    records are dropped and counted instead.
    """


class InsufficientRoute(StageAnalysisError, ValueError):
    """Route geometry has fewer than two distinct points."""


class EmptyTrace(StageAnalysisError, ValueError):
    """No samples left to build a timeline or interpolation model from."""


class NonMonotonicData(StageAnalysisError, ValueError):
    """A sequence violates the required strictly increasing ordering."""


class OutOfRangeQuery(StageAnalysisError, ValueError):
    """Interpolation query outside the sampled domain of a model."""

    def __init__(self, values: Sequence[float], domain: Tuple[float, float], quantity: str):
        self.values = list(values)
        self.domain = domain
        self.quantity = quantity
        shown = ", ".join(f"{v:g}" for v in self.values[:5])
        if len(self.values) > 5:
            shown += ", ..."
        super().__init__(
            f"{quantity} query outside sampled range "
            f"[{domain[0]:g}, {domain[1]:g}]: {shown}"
        )
