"""Streak computation over completion timestamps."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, tzinfo

from wellness_engine.model import CompletionEvent, StreakResult
from wellness_engine.timewindow import days_between, is_consecutive_day, to_local_date

EMPTY_STREAK = StreakResult(
    current_streak=0, longest_streak=0, last_event_date=None, is_active=False
)


def compute_streak(
    events: Iterable[datetime],
    now: datetime,
    *,
    tz: tzinfo | None = None,
) -> StreakResult:
    """Compute current/longest streak of consecutive active days.

    Timestamps are reduced to calendar dates (in ``tz`` when given),
    deduplicated and walked from the most recent date backwards. The input
    order does not matter and future-dated events are accepted as they are.

    Args:
        events: Completion timestamps of one tracked behavior.
        now: Evaluation instant; decides ``is_active``.
        tz: Optional zone used to derive local calendar dates.

    Returns:
        StreakResult; ``current_streak`` is the run ending at the most
        recent date, ``is_active`` holds when that date is today or yesterday.
    """
    days = sorted({to_local_date(ts, tz) for ts in events}, reverse=True)
    if not days:
        return EMPTY_STREAK

    current: int | None = None
    run = 1
    longest = 1
    for newer, older in zip(days, days[1:]):
        if is_consecutive_day(older, newer):
            run += 1
        else:
            if current is None:
                current = run
            run = 1
        longest = max(longest, run)
    if current is None:
        current = run

    last = days[0]
    since_last = days_between(last, to_local_date(now, tz))
    return StreakResult(
        current_streak=current,
        longest_streak=longest,
        last_event_date=last,
        is_active=0 <= since_last <= 1,
    )


def compute_behavior_streak(
    events: Iterable[CompletionEvent],
    behavior_id: str,
    now: datetime,
    *,
    tz: tzinfo | None = None,
) -> StreakResult:
    """Streak for one behavior out of a mixed completion log."""
    return compute_streak(
        (e.timestamp for e in events if e.behavior_id == behavior_id),
        now,
        tz=tz,
    )


def completion_rate(
    events: Iterable[datetime],
    now: datetime,
    expected_days: int,
    *,
    window_days: int = 30,
) -> int:
    """Percentage (0-100) of expected completions logged in the trailing window."""
    if expected_days <= 0:
        return 0
    start = now - timedelta(days=window_days)
    recent = sum(1 for ts in events if start < ts < now)
    return max(0, min(100, round(recent / expected_days * 100)))
