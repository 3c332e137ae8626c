"""Calendar-day and time-of-day helpers shared by the calculators."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo

ONE_DAY = timedelta(days=1)


def to_local_date(ts: datetime, tz: tzinfo | None = None) -> date:
    """Strip time-of-day, converting aware timestamps to ``tz`` first."""
    if tz is not None and ts.tzinfo is not None:
        ts = ts.astimezone(tz)
    return ts.date()


def to_local_time(ts: datetime, tz: tzinfo | None = None) -> time:
    """Time of day of ``ts`` (naive), converted to ``tz`` when both are aware."""
    if tz is not None and ts.tzinfo is not None:
        ts = ts.astimezone(tz)
    return ts.time()


def days_between(earlier: date, later: date) -> int:
    """Signed number of calendar days from ``earlier`` to ``later``."""
    return (later - earlier).days


def is_same_day(a: date, b: date) -> bool:
    return a == b


def is_consecutive_day(earlier: date, later: date) -> bool:
    """True when ``later`` is exactly the day after ``earlier``."""
    return days_between(earlier, later) == 1


def in_trailing_window(ts: datetime, end: datetime, period: timedelta) -> bool:
    """Membership in the half-open window ``[end - period, end)``."""
    return end - period <= ts < end


def in_time_of_day_window(t: time, start: time, end: time) -> bool:
    """Membership in ``[start, end)``; wraps past midnight when ``end < start``."""
    if start <= end:
        return start <= t < end
    return t >= start or t < end


def next_opening(now: datetime, start: time, tz: tzinfo | None = None) -> datetime:
    """First instant strictly after ``now`` at which the local clock reads ``start``.

    The result keeps ``now``'s timezone; with ``tz`` the opening is computed on
    the ``tz`` wall clock and converted back.
    """
    local = now.astimezone(tz) if tz is not None and now.tzinfo is not None else now
    candidate = local.replace(
        hour=start.hour,
        minute=start.minute,
        second=start.second,
        microsecond=start.microsecond,
    )
    if candidate <= local:
        candidate = candidate + ONE_DAY
    if local is not now:
        return candidate.astimezone(now.tzinfo)
    return candidate


def format_duration(delta: timedelta) -> str:
    """Compact human-readable duration, e.g. ``1d 2h``, ``7h 59min``, ``45min``."""
    total_minutes = int(delta.total_seconds() // 60)
    days, rem = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rem, 60)
    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes or not parts:
        parts.append(f"{minutes}min")
    return " ".join(parts)
