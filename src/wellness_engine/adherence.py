"""Adherence reporting over dose logs (calendar + daily aggregation)."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, tzinfo

import pandas as pd

from wellness_engine.model import DoseEvent, DoseStatus
from wellness_engine.timewindow import to_local_date, to_local_time

FRAME_COLUMNS = ["datetime", "date", "time", "amount", "unit", "status"]
DAILY_COLUMNS = ["date", "taken", "skipped", "expected", "missed"]


@dataclass(frozen=True)
class AdherenceSummary:
    """Totals of a medication's log over an inclusive date range."""

    start_date: date
    end_date: date
    total_expected: int
    total_taken: int
    total_skipped: int
    total_missed: int

    @property
    def adherence_rate(self) -> float:
        """Taken doses as a percentage (0-100) of expected doses."""
        if self.total_expected == 0:
            return 100.0
        return self.total_taken / self.total_expected * 100


def doses_to_frame(
    log: Sequence[DoseEvent], tz: tzinfo | None = None
) -> pd.DataFrame:
    """Convert a dose log to a DataFrame ordered by timestamp."""
    rows = [
        {
            "datetime": e.timestamp,
            "date": to_local_date(e.timestamp, tz),
            "time": to_local_time(e.timestamp, tz).replace(second=0, microsecond=0),
            "amount": e.amount,
            "unit": e.unit,
            "status": e.status.value,
        }
        for e in log
    ]
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    if df.empty:
        return df
    return df.sort_values("datetime").reset_index(drop=True)


def build_calendar(start: date, end: date) -> pd.DataFrame:
    """Build inclusive day calendar DataFrame."""
    days = pd.date_range(start=start, end=end, freq="D")
    return pd.DataFrame({"date": days.date})


def daily_adherence(
    log: Sequence[DoseEvent],
    start: date,
    end: date,
    expected_per_day: int,
    tz: tzinfo | None = None,
) -> pd.DataFrame:
    """One row per calendar day with taken/skipped/expected/missed counts.

    Delayed doses count as taken. ``missed`` never goes below zero, so extra
    doses on one day do not offset gaps on another.

    Raises:
        ValueError: If ``start`` is after ``end`` or ``expected_per_day`` < 0.
    """
    if start > end:
        raise ValueError(f"start {start} is after end {end}")
    if expected_per_day < 0:
        raise ValueError("expected_per_day must be >= 0")

    cal = build_calendar(start, end)
    events = doses_to_frame(log, tz)
    if not events.empty:
        events = events[(events["date"] >= start) & (events["date"] <= end)]

    if events.empty:
        out = cal.assign(taken=0, skipped=0)
    else:
        events = events.assign(
            taken=events["status"] != DoseStatus.SKIPPED.value,
            skipped=events["status"] == DoseStatus.SKIPPED.value,
        )
        per_day = events.groupby("date", as_index=False).agg(
            taken=("taken", "sum"),
            skipped=("skipped", "sum"),
        )
        out = cal.merge(per_day, on="date", how="left")
        out[["taken", "skipped"]] = out[["taken", "skipped"]].fillna(0)

    out["taken"] = out["taken"].astype(int)
    out["skipped"] = out["skipped"].astype(int)
    out["expected"] = expected_per_day
    out["missed"] = (out["expected"] - out["taken"] - out["skipped"]).clip(lower=0)
    return out[DAILY_COLUMNS].reset_index(drop=True)


def adherence_summary(
    log: Sequence[DoseEvent],
    start: date,
    end: date,
    expected_per_day: int,
    tz: tzinfo | None = None,
) -> AdherenceSummary:
    """Aggregate ``daily_adherence`` over the whole range."""
    daily = daily_adherence(log, start, end, expected_per_day, tz)
    return AdherenceSummary(
        start_date=start,
        end_date=end,
        total_expected=int(daily["expected"].sum()),
        total_taken=int(daily["taken"].sum()),
        total_skipped=int(daily["skipped"].sum()),
        total_missed=int(daily["missed"].sum()),
    )
