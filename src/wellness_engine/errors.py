"""Error taxonomy for the analytics engine."""

from __future__ import annotations


class WellnessEngineError(Exception):
    """Base class for engine errors."""


class InvalidConstraintConfiguration(WellnessEngineError, ValueError):
    """A dosage constraint was built with values it cannot be evaluated with."""


class InvalidSummaryState(WellnessEngineError, ValueError):
    """Summary regeneration counters break their ordering rule."""
