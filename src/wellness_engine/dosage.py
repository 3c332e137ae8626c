"""Validation of a proposed dose against a medication's constraints."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, tzinfo

from wellness_engine.constraints import (
    ActiveTimeWindow,
    CustomConstraint,
    DosageConstraint,
    MaxCountPerPeriod,
    MaxCumulativeAmountPerPeriod,
    MinTimeBetweenDoses,
)
from wellness_engine.model import DosageCheckResult, DoseEvent
from wellness_engine.timewindow import (
    format_duration,
    in_time_of_day_window,
    in_trailing_window,
    next_opening,
    to_local_time,
)

logger = logging.getLogger(__name__)

AdvisoryPredicate = Callable[[CustomConstraint], bool]


def check_dose(
    constraints: Sequence[DosageConstraint],
    log: Iterable[DoseEvent],
    proposed_time: datetime,
    proposed_amount: float | None = None,
    *,
    advisory: AdvisoryPredicate | None = None,
    tz: tzinfo | None = None,
) -> DosageCheckResult:
    """Decide whether a dose at ``proposed_time`` is currently permitted.

    Constraints are evaluated in the order given and the first violation is
    returned. A refusal is a normal result, not an error. Custom constraints
    never block; when ``advisory`` accepts one, its description is reported
    in ``reason`` of the permitted result.

    For count limits ``next_permitted_time`` is the instant the oldest
    counted dose reaches the start of the trailing window. That dose still
    counts at that instant, so a dose is permitted only strictly after it.
    Cumulative totals that reach the cap within float rounding are allowed.

    Args:
        constraints: Constraints of the medication, in priority order.
        log: Dose log; skipped entries and entries after ``proposed_time``
            are ignored.
        proposed_time: When the user wants to take the dose.
        proposed_amount: Amount of the proposed dose, in the unit of any
            cumulative constraint. ``None`` counts as zero.
        advisory: Caller predicate over custom constraint parameters.
        tz: Zone whose wall clock time windows refer to.

    Returns:
        DosageCheckResult.
    """
    doses = [
        e for e in log if e.status.is_dose and e.timestamp <= proposed_time
    ]
    prior = [e.timestamp for e in doses]
    amounts = [(e.timestamp, e.amount or 0.0) for e in doses]
    notes: list[str] = []

    for constraint in constraints:
        if isinstance(constraint, MinTimeBetweenDoses):
            result = _check_min_time(constraint, prior, proposed_time)
        elif isinstance(constraint, MaxCountPerPeriod):
            result = _check_max_count(constraint, prior, proposed_time)
        elif isinstance(constraint, MaxCumulativeAmountPerPeriod):
            result = _check_cumulative(
                constraint, amounts, proposed_time, proposed_amount or 0.0
            )
        elif isinstance(constraint, ActiveTimeWindow):
            result = _check_time_window(constraint, proposed_time, tz)
        elif isinstance(constraint, CustomConstraint):
            if advisory is not None and advisory(constraint):
                notes.append(constraint.description)
            result = None
        else:
            raise TypeError(f"Unsupported dosage constraint: {constraint!r}")

        if result is not None:
            logger.debug(
                "Dose at %s refused by %s: %s",
                proposed_time.isoformat(),
                constraint.kind,
                result.reason,
                extra={"constraint": constraint.kind},
            )
            return result

    return DosageCheckResult(permitted=True, reason="; ".join(notes) or None)


def _check_min_time(
    constraint: MinTimeBetweenDoses,
    prior: list[datetime],
    proposed_time: datetime,
) -> DosageCheckResult | None:
    if not prior:
        return None
    last = max(prior)
    elapsed = proposed_time - last
    if elapsed >= constraint.duration:
        return None
    return DosageCheckResult(
        permitted=False,
        violated_constraint=constraint,
        next_permitted_time=last + constraint.duration,
        reason=(
            f"Last dose was {format_duration(elapsed)} ago; "
            f"wait {format_duration(constraint.duration - elapsed)} more "
            f"({constraint.description})"
        ),
    )


def _check_max_count(
    constraint: MaxCountPerPeriod,
    prior: list[datetime],
    proposed_time: datetime,
) -> DosageCheckResult | None:
    window = sorted(
        ts for ts in prior if in_trailing_window(ts, proposed_time, constraint.period)
    )
    if len(window) < constraint.count:
        return None
    # The count drops below the limit once this many of the oldest doses age out.
    frees_slot = window[len(window) - constraint.count]
    return DosageCheckResult(
        permitted=False,
        violated_constraint=constraint,
        next_permitted_time=frees_slot + constraint.period,
        reason=(
            f"{len(window)} doses already taken in the last "
            f"{format_duration(constraint.period)} ({constraint.description})"
        ),
    )


def _check_cumulative(
    constraint: MaxCumulativeAmountPerPeriod,
    amounts: list[tuple[datetime, float]],
    proposed_time: datetime,
    proposed_amount: float,
) -> DosageCheckResult | None:
    taken = math.fsum(
        amount
        for ts, amount in amounts
        if in_trailing_window(ts, proposed_time, constraint.period)
    )
    total = taken + proposed_amount
    if total <= constraint.amount or math.isclose(total, constraint.amount):
        return None
    remaining = max(constraint.amount - taken, 0.0)
    unit = constraint.unit
    return DosageCheckResult(
        permitted=False,
        violated_constraint=constraint,
        reason=(
            f"{taken:g} {unit} already taken in the last "
            f"{format_duration(constraint.period)}; {proposed_amount:g} {unit} "
            f"would exceed the {constraint.amount:g} {unit} limit "
            f"(at most {remaining:g} {unit} allowed now)"
        ),
    )


def _check_time_window(
    constraint: ActiveTimeWindow,
    proposed_time: datetime,
    tz: tzinfo | None,
) -> DosageCheckResult | None:
    local = to_local_time(proposed_time, tz)
    if in_time_of_day_window(local, constraint.start, constraint.end):
        return None
    return DosageCheckResult(
        permitted=False,
        violated_constraint=constraint,
        next_permitted_time=next_opening(proposed_time, constraint.start, tz),
        reason=(
            f"{local:%H:%M} is outside the allowed window "
            f"{constraint.start:%H:%M}-{constraint.end:%H:%M}"
        ),
    )
