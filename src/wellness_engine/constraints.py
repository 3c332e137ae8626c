"""Dosage constraint variants.

A constraint is immutable configuration attached to a medication. The set of
variants is closed: ``DosageConstraint`` is the union of the classes below and
callers dispatch on the concrete type (or on ``kind``). Every variant validates
its values on construction so that evaluation never sees a negative period or
a zero count.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import time, timedelta
from types import MappingProxyType
from typing import Any, ClassVar, Union

from wellness_engine.errors import InvalidConstraintConfiguration
from wellness_engine.timewindow import format_duration


def _require_positive_duration(name: str, value: timedelta) -> None:
    if not isinstance(value, timedelta):
        raise InvalidConstraintConfiguration(f"{name} must be a timedelta")
    if value <= timedelta(0):
        raise InvalidConstraintConfiguration(
            f"{name} must be positive, got {value}"
        )


def _set_default_description(obj: object, text: str) -> None:
    if not getattr(obj, "description"):
        object.__setattr__(obj, "description", text)


@dataclass(frozen=True)
class MinTimeBetweenDoses:
    """At least ``duration`` must pass between two doses."""

    kind: ClassVar[str] = "minTimeBetween"

    duration: timedelta
    description: str = ""

    def __post_init__(self) -> None:
        _require_positive_duration("duration", self.duration)
        _set_default_description(
            self, f"Wait at least {format_duration(self.duration)} between doses"
        )


@dataclass(frozen=True)
class MaxCountPerPeriod:
    """No more than ``count`` doses within any trailing ``period``."""

    kind: ClassVar[str] = "maxPerPeriod"

    count: int
    period: timedelta
    description: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise InvalidConstraintConfiguration("count must be an integer")
        if self.count <= 0:
            raise InvalidConstraintConfiguration(
                f"count must be positive, got {self.count}"
            )
        _require_positive_duration("period", self.period)
        _set_default_description(
            self,
            f"At most {self.count} doses per {format_duration(self.period)}",
        )


@dataclass(frozen=True)
class MaxCumulativeAmountPerPeriod:
    """Total amount taken within any trailing ``period`` is capped at ``amount``.

    Logged amounts are assumed to be expressed in ``unit`` already.
    """

    kind: ClassVar[str] = "maxCumulativeAmount"

    amount: float
    unit: str
    period: timedelta
    description: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, (int, float)):
            raise InvalidConstraintConfiguration("amount must be a number")
        if not self.amount > 0:
            raise InvalidConstraintConfiguration(
                f"amount must be positive, got {self.amount}"
            )
        if not isinstance(self.unit, str) or not self.unit.strip():
            raise InvalidConstraintConfiguration("unit must be a non-empty string")
        _require_positive_duration("period", self.period)
        _set_default_description(
            self,
            f"At most {self.amount:g} {self.unit} per "
            f"{format_duration(self.period)}",
        )


@dataclass(frozen=True)
class ActiveTimeWindow:
    """Doses are allowed only between ``start`` (inclusive) and ``end`` (exclusive).

    ``end`` earlier than ``start`` means the window spans midnight.
    """

    kind: ClassVar[str] = "timeWindow"

    start: time
    end: time
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.start, time) or not isinstance(self.end, time):
            raise InvalidConstraintConfiguration("start and end must be times")
        if self.start.tzinfo is not None or self.end.tzinfo is not None:
            raise InvalidConstraintConfiguration("window bounds must be naive times")
        if self.start == self.end:
            raise InvalidConstraintConfiguration(
                f"time window {self.start:%H:%M}-{self.end:%H:%M} is empty"
            )
        _set_default_description(
            self, f"Only between {self.start:%H:%M} and {self.end:%H:%M}"
        )

    @property
    def wraps_midnight(self) -> bool:
        return self.end < self.start


@dataclass(frozen=True)
class CustomConstraint:
    """Open-ended rule; advisory only, interpreted by the caller."""

    kind: ClassVar[str] = "custom"

    parameters: Mapping[str, Any] = field(default_factory=dict)
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.parameters, Mapping):
            raise InvalidConstraintConfiguration("parameters must be a mapping")
        object.__setattr__(
            self, "parameters", MappingProxyType(dict(self.parameters))
        )
        _set_default_description(self, "Custom rule")

    def __hash__(self) -> int:
        return hash((self.kind, self.description, frozenset(self.parameters)))


DosageConstraint = Union[
    MinTimeBetweenDoses,
    MaxCountPerPeriod,
    MaxCumulativeAmountPerPeriod,
    ActiveTimeWindow,
    CustomConstraint,
]

CONSTRAINT_TYPES: dict[str, type] = {
    cls.kind: cls
    for cls in (
        MinTimeBetweenDoses,
        MaxCountPerPeriod,
        MaxCumulativeAmountPerPeriod,
        ActiveTimeWindow,
        CustomConstraint,
    )
}
