"""Modelos tipados para eventos de hábitos, dosis y resultados del motor."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING

from wellness_engine.errors import InvalidSummaryState

if TYPE_CHECKING:
    from wellness_engine.constraints import DosageConstraint


class DoseStatus(str, Enum):
    """How a dose log entry was resolved by the user."""

    TAKEN = "taken"
    SKIPPED = "skipped"
    DELAYED = "delayed"

    @property
    def is_dose(self) -> bool:
        """Whether the entry represents an ingested dose."""
        return self is not DoseStatus.SKIPPED


@dataclass(frozen=True)
class CompletionEvent:
    """One completion of a tracked behavior (habit, exercise, journaling...)."""

    behavior_id: str
    timestamp: datetime


@dataclass(frozen=True)
class DoseEvent:
    """One entry of a medication log (append-only)."""

    timestamp: datetime
    amount: float | None = None
    unit: str | None = None
    status: DoseStatus = DoseStatus.TAKEN


@dataclass(frozen=True)
class StreakResult:
    """Current/longest run of consecutive calendar days with activity."""

    current_streak: int
    longest_streak: int
    last_event_date: date | None
    is_active: bool


@dataclass(frozen=True)
class DosageCheckResult:
    """Outcome of evaluating a proposed dose against a set of constraints."""

    permitted: bool
    violated_constraint: DosageConstraint | None = None
    next_permitted_time: datetime | None = None
    reason: str | None = None


@dataclass(frozen=True)
class SummaryRegenerationState:
    """Counters tracking how a rolling profile summary was last rebuilt."""

    generation_number: int = 1
    last_full_regen_number: int = 1

    def __post_init__(self) -> None:
        if self.generation_number < 1 or self.last_full_regen_number < 1:
            raise InvalidSummaryState(
                "generation counters start at 1, got "
                f"generation={self.generation_number}, "
                f"last_full={self.last_full_regen_number}"
            )
        if self.last_full_regen_number > self.generation_number:
            raise InvalidSummaryState(
                f"last full regeneration #{self.last_full_regen_number} is ahead of "
                f"generation #{self.generation_number}"
            )

    @property
    def gap(self) -> int:
        """Regenerations since the last full rebuild."""
        return self.generation_number - self.last_full_regen_number
