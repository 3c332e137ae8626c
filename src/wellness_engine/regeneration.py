"""Drift-bounded regeneration policy for the rolling profile summary.

The summary is normally rebuilt incrementally (previous summary + new
events). Each incremental step compounds approximation error, so every
``interval`` generations the summary is rebuilt from the full history.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

from wellness_engine.config import EngineConfig
from wellness_engine.model import SummaryRegenerationState

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 4


class RegenerationMode(str, Enum):
    INCREMENTAL = "incremental"
    FULL_REBUILD = "full_rebuild"


@dataclass(frozen=True)
class RegenerationCheck:
    """Whether the summary should be regenerated now, and how."""

    needs_regeneration: bool
    is_full_regeneration: bool
    recent_data_tokens: int
    reason: str


def initial_state() -> SummaryRegenerationState:
    """State after the first summary, which is always built from scratch."""
    return SummaryRegenerationState(generation_number=1, last_full_regen_number=1)


def needs_full_regeneration(
    state: SummaryRegenerationState, interval: int = DEFAULT_INTERVAL
) -> bool:
    """True when ``interval`` or more generations passed since the last rebuild."""
    if interval < 1:
        raise ValueError(f"interval must be a positive integer, got {interval}")
    return state.generation_number - state.last_full_regen_number >= interval


def next_mode(
    state: SummaryRegenerationState, interval: int = DEFAULT_INTERVAL
) -> RegenerationMode:
    if needs_full_regeneration(state, interval):
        return RegenerationMode.FULL_REBUILD
    return RegenerationMode.INCREMENTAL


def record_regeneration(
    state: SummaryRegenerationState, *, full: bool
) -> SummaryRegenerationState:
    """Successor state once a regeneration has completed."""
    generation = state.generation_number + 1
    return SummaryRegenerationState(
        generation_number=generation,
        last_full_regen_number=generation if full else state.last_full_regen_number,
    )


def estimate_tokens(text: str, chars_per_token: int = 4) -> int:
    """Rough token count (~4 characters per token)."""
    return math.ceil(len(text) / chars_per_token)


def check_regeneration(
    existing: SummaryRegenerationState | None,
    *,
    journal_entries_count: int,
    recent_data_tokens: int | None = None,
    recent_data: str | None = None,
    config: EngineConfig | None = None,
) -> RegenerationCheck:
    """Decide whether recent data warrants a new summary and which kind.

    Args:
        existing: Counters of the current summary, or None if none exists.
        recent_data_tokens: Estimated tokens of data logged since the
            current summary was generated.
        recent_data: Raw text of that data. Used when
            ``recent_data_tokens`` is not given, estimated with
            ``config.chars_per_token``.
        journal_entries_count: Total journal entries available.
        config: Thresholds; defaults to ``EngineConfig()``.

    Returns:
        RegenerationCheck with a human-readable reason.
    """
    cfg = config or EngineConfig()
    if recent_data_tokens is None:
        recent_data_tokens = estimate_tokens(recent_data or "", cfg.chars_per_token)

    if existing is None:
        has_minimum = journal_entries_count >= cfg.minimum_entries_for_summary
        return RegenerationCheck(
            needs_regeneration=has_minimum,
            is_full_regeneration=True,
            recent_data_tokens=0,
            reason=(
                "No summary exists - generating first summary"
                if has_minimum
                else "Not enough data yet (need "
                f"{cfg.minimum_entries_for_summary}+ journal entries)"
            ),
        )

    if recent_data_tokens <= cfg.recent_data_threshold:
        return RegenerationCheck(
            needs_regeneration=False,
            is_full_regeneration=False,
            recent_data_tokens=recent_data_tokens,
            reason=(
                f"Recent data ({recent_data_tokens} tokens) below threshold "
                f"({cfg.recent_data_threshold})"
            ),
        )

    full = needs_full_regeneration(existing, cfg.full_regen_interval)
    logger.debug(
        "Summary generation #%d due (%s, %d tokens)",
        existing.generation_number + 1,
        "full" if full else "incremental",
        recent_data_tokens,
        extra={"generation": existing.generation_number + 1},
    )
    return RegenerationCheck(
        needs_regeneration=True,
        is_full_regeneration=full,
        recent_data_tokens=recent_data_tokens,
        reason=(
            f"Full regeneration: {recent_data_tokens} tokens + generation "
            f"#{existing.generation_number} (every {cfg.full_regen_interval}th "
            "is full)"
            if full
            else f"Incremental update: {recent_data_tokens} tokens exceeds threshold"
        ),
    )
