"""Decoding of persisted records into typed engine values (and back).

Records use the app's camelCase JSON layout, e.g. a constraint::

    {"type": "maxPerPeriod", "maxCount": 3, "periodHours": 24,
     "description": "Max 3 per day"}

Decode once at the repository boundary; nothing downstream inspects raw maps.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Any

from dateutil import parser as dtparser

from wellness_engine.constraints import (
    ActiveTimeWindow,
    CustomConstraint,
    DosageConstraint,
    MaxCountPerPeriod,
    MaxCumulativeAmountPerPeriod,
    MinTimeBetweenDoses,
)
from wellness_engine.errors import InvalidConstraintConfiguration
from wellness_engine.model import DoseEvent, DoseStatus, SummaryRegenerationState


def parse_timestamp(value: Any, tz: tzinfo | None = None) -> datetime:
    """Parse an ISO-8601 string or epoch seconds.

    Naive ISO values are interpreted in ``tz`` when given.

    Raises:
        ValueError: If the value is missing or unparseable.
    """
    if isinstance(value, str) and value.strip():
        dt = dtparser.isoparse(value.strip())
        if dt.tzinfo is None and tz is not None:
            dt = dt.replace(tzinfo=tz)
        return dt
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=tz or timezone.utc)
    raise ValueError(f"Missing or invalid timestamp: {value!r}")


def _number(raw: Mapping[str, Any], key: str, kind: str) -> float:
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConstraintConfiguration(
            f"{kind} constraint requires numeric {key!r}"
        )
    return value


def _hours(delta: timedelta) -> float | int:
    hours = delta.total_seconds() / 3600
    return int(hours) if hours.is_integer() else hours


def _parse_clock(value: Any, key: str) -> time:
    if not isinstance(value, str):
        raise InvalidConstraintConfiguration(f"timeWindow requires {key!r} as HH:MM")
    try:
        return time.fromisoformat(value.strip())
    except ValueError as exc:
        raise InvalidConstraintConfiguration(
            f"timeWindow {key!r} is not a valid time: {value!r}"
        ) from exc


def constraint_from_dict(raw: Mapping[str, Any]) -> DosageConstraint:
    """Decode one constraint record.

    Unknown ``type`` tags decode to an advisory ``CustomConstraint``.

    Raises:
        InvalidConstraintConfiguration: If a known type lacks its values or
            carries values the constraint rejects.
    """
    if not isinstance(raw, Mapping):
        raise InvalidConstraintConfiguration("constraint record must be an object")
    kind = raw.get("type")
    description = str(raw.get("description") or "")
    params = raw.get("params") or {}

    if kind == MinTimeBetweenDoses.kind:
        minutes = _number(raw, "durationMinutes", kind)
        return MinTimeBetweenDoses(
            duration=timedelta(minutes=minutes), description=description
        )
    if kind == MaxCountPerPeriod.kind:
        count = _number(raw, "maxCount", kind)
        if not float(count).is_integer():
            raise InvalidConstraintConfiguration("maxCount must be a whole number")
        return MaxCountPerPeriod(
            count=int(count),
            period=timedelta(hours=_number(raw, "periodHours", kind)),
            description=description,
        )
    if kind == MaxCumulativeAmountPerPeriod.kind:
        return MaxCumulativeAmountPerPeriod(
            amount=float(_number(raw, "maxAmount", kind)),
            unit=str(raw.get("unit") or ""),
            period=timedelta(hours=_number(raw, "periodHours", kind)),
            description=description,
        )
    if kind == ActiveTimeWindow.kind:
        if not isinstance(params, Mapping):
            raise InvalidConstraintConfiguration("timeWindow params must be an object")
        return ActiveTimeWindow(
            start=_parse_clock(params.get("start"), "start"),
            end=_parse_clock(params.get("end"), "end"),
            description=description,
        )
    return CustomConstraint(parameters=params, description=description)


def constraint_to_dict(constraint: DosageConstraint) -> dict[str, Any]:
    """Encode a constraint into the persisted record layout."""
    out: dict[str, Any] = {
        "type": constraint.kind,
        "durationMinutes": None,
        "maxCount": None,
        "periodHours": None,
        "maxAmount": None,
        "unit": None,
        "params": None,
        "description": constraint.description,
    }
    if isinstance(constraint, MinTimeBetweenDoses):
        minutes = constraint.duration.total_seconds() / 60
        out["durationMinutes"] = int(minutes) if minutes.is_integer() else minutes
    elif isinstance(constraint, MaxCountPerPeriod):
        out["maxCount"] = constraint.count
        out["periodHours"] = _hours(constraint.period)
    elif isinstance(constraint, MaxCumulativeAmountPerPeriod):
        out["maxAmount"] = constraint.amount
        out["unit"] = constraint.unit
        out["periodHours"] = _hours(constraint.period)
    elif isinstance(constraint, ActiveTimeWindow):
        out["params"] = {
            "start": constraint.start.strftime("%H:%M"),
            "end": constraint.end.strftime("%H:%M"),
        }
    else:
        out["params"] = dict(constraint.parameters)
    return out


def dose_event_from_dict(raw: Mapping[str, Any], tz: tzinfo | None = None) -> DoseEvent:
    """Decode a medication log entry; unknown statuses count as taken."""
    try:
        status = DoseStatus(raw.get("status") or DoseStatus.TAKEN.value)
    except ValueError:
        status = DoseStatus.TAKEN
    amount = raw.get("amount")
    unit = raw.get("unit")
    return DoseEvent(
        timestamp=parse_timestamp(raw.get("timestamp"), tz),
        amount=float(amount) if amount is not None else None,
        unit=str(unit) if unit is not None else None,
        status=status,
    )


def dose_event_to_dict(event: DoseEvent) -> dict[str, Any]:
    return {
        "timestamp": event.timestamp.isoformat(),
        "amount": event.amount,
        "unit": event.unit,
        "status": event.status.value,
    }


def summary_state_from_dict(raw: Mapping[str, Any]) -> SummaryRegenerationState:
    """Decode regeneration counters of a stored summary (both default to 1)."""
    return SummaryRegenerationState(
        generation_number=int(raw.get("generationNumber") or 1),
        last_full_regen_number=int(raw.get("lastFullRegenNumber") or 1),
    )


def summary_state_to_dict(state: SummaryRegenerationState) -> dict[str, int]:
    return {
        "generationNumber": state.generation_number,
        "lastFullRegenNumber": state.last_full_regen_number,
    }
