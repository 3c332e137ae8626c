from __future__ import annotations

from datetime import date, datetime

import pytest

from wellness_engine.adherence import (
    AdherenceSummary,
    adherence_summary,
    build_calendar,
    daily_adherence,
    doses_to_frame,
)
from wellness_engine.model import DoseEvent, DoseStatus


def _log() -> list[DoseEvent]:
    return [
        DoseEvent(datetime(2024, 3, 2, 20, 15, 30), amount=10, unit="mg"),
        DoseEvent(datetime(2024, 3, 1, 8, 0), amount=10, unit="mg"),
        DoseEvent(datetime(2024, 3, 1, 20, 0), status=DoseStatus.SKIPPED),
        DoseEvent(datetime(2024, 3, 3, 9, 0), status=DoseStatus.DELAYED),
        DoseEvent(datetime(2024, 2, 20, 9, 0)),
    ]


def test_doses_to_frame_empty() -> None:
    df = doses_to_frame([])
    assert df.empty
    assert list(df.columns) == ["datetime", "date", "time", "amount", "unit", "status"]


def test_doses_to_frame_orders_and_truncates_time() -> None:
    df = doses_to_frame(_log())
    assert list(df["date"])[:2] == [date(2024, 2, 20), date(2024, 3, 1)]
    last_march_2 = df[df["date"] == date(2024, 3, 2)].iloc[0]
    assert last_march_2["time"].second == 0
    assert last_march_2["status"] == "taken"


def test_build_calendar_inclusive() -> None:
    cal = build_calendar(date(2024, 3, 1), date(2024, 3, 3))
    assert list(cal["date"]) == [date(2024, 3, 1), date(2024, 3, 2), date(2024, 3, 3)]


def test_daily_adherence_counts_per_day() -> None:
    out = daily_adherence(
        _log(), date(2024, 3, 1), date(2024, 3, 4), expected_per_day=2
    )
    assert list(out.columns) == ["date", "taken", "skipped", "expected", "missed"]
    assert list(out["date"]) == [
        date(2024, 3, 1),
        date(2024, 3, 2),
        date(2024, 3, 3),
        date(2024, 3, 4),
    ]
    assert list(out["taken"]) == [1, 1, 1, 0]
    assert list(out["skipped"]) == [1, 0, 0, 0]
    assert list(out["missed"]) == [0, 1, 1, 2]


def test_daily_adherence_without_doses_in_range() -> None:
    out = daily_adherence(
        _log(), date(2024, 4, 1), date(2024, 4, 2), expected_per_day=1
    )
    assert list(out["taken"]) == [0, 0]
    assert list(out["missed"]) == [1, 1]


def test_missed_never_negative() -> None:
    log = [DoseEvent(datetime(2024, 3, 1, h)) for h in (8, 12, 20)]
    out = daily_adherence(log, date(2024, 3, 1), date(2024, 3, 1), expected_per_day=1)
    assert out.loc[0, "taken"] == 3
    assert out.loc[0, "missed"] == 0


def test_daily_adherence_rejects_reversed_range() -> None:
    with pytest.raises(ValueError):
        daily_adherence([], date(2024, 3, 2), date(2024, 3, 1), expected_per_day=1)


def test_adherence_summary_totals_and_rate() -> None:
    summary = adherence_summary(
        _log(), date(2024, 3, 1), date(2024, 3, 4), expected_per_day=2
    )
    assert summary == AdherenceSummary(
        start_date=date(2024, 3, 1),
        end_date=date(2024, 3, 4),
        total_expected=8,
        total_taken=3,
        total_skipped=1,
        total_missed=4,
    )
    assert summary.adherence_rate == pytest.approx(37.5)


def test_adherence_rate_without_expectations() -> None:
    summary = adherence_summary([], date(2024, 3, 1), date(2024, 3, 1), 0)
    assert summary.adherence_rate == 100.0
