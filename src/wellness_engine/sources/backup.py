"""Reading of the app's JSON backup exports (habits, medications, logs)."""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from typing import Any

from wellness_engine.codec import (
    constraint_from_dict,
    dose_event_from_dict,
    parse_timestamp,
    summary_state_from_dict,
)
from wellness_engine.constraints import DosageConstraint
from wellness_engine.model import CompletionEvent, DoseEvent, SummaryRegenerationState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackupPaths:
    """Folder holding backup_*.json exports."""

    root: Path


@dataclass(frozen=True)
class MedicationRecord:
    """A medication with its decoded constraints and its own dose log."""

    medication_id: str
    name: str
    constraints: tuple[DosageConstraint, ...]
    log: tuple[DoseEvent, ...]


class BackupSource:
    """JSON backup reading source."""

    def __init__(self, paths: BackupPaths) -> None:
        self._paths = paths

    def validate(self) -> None:
        """Validate that the backup directory exists."""
        if not self._paths.root.exists():
            raise FileNotFoundError(str(self._paths.root))

    def newest_json(self) -> Path:
        """Return newest backup_*.json by mtime."""
        files = sorted(
            self._paths.root.glob("backup_*.json"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        if not files:
            raise FileNotFoundError(f"No backup_*.json in {self._paths.root}")
        return files[0]

    def load(self, path: Path) -> dict[str, Any]:
        """Read a backup file.

        Raises:
            ValueError: If the top-level JSON value is not an object.
        """
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError("Backup JSON must be an object")
        return raw

    def load_completions(
        self, path: Path, tz: tzinfo | None = None
    ) -> list[CompletionEvent]:
        """Flatten every habit's completion dates into completion events."""
        out: list[CompletionEvent] = []
        for habit in _section(self.load(path), "habits"):
            if not isinstance(habit, dict) or not habit.get("id"):
                continue
            for value in habit.get("completionDates") or []:
                out.append(
                    CompletionEvent(
                        behavior_id=str(habit["id"]),
                        timestamp=parse_timestamp(value, tz),
                    )
                )
        out.sort(key=lambda e: e.timestamp, reverse=True)
        return out

    def load_medications(
        self, path: Path, tz: tzinfo | None = None
    ) -> list[MedicationRecord]:
        """Decode medications and attach each one's log, oldest entry first.

        Raises:
            InvalidConstraintConfiguration: If a stored constraint is malformed.
        """
        data = self.load(path)
        logs: dict[str, list[DoseEvent]] = defaultdict(list)
        for item in _section(data, "medication_logs"):
            if not isinstance(item, dict) or not item.get("medicationId"):
                continue
            logs[str(item["medicationId"])].append(dose_event_from_dict(item, tz))

        out: list[MedicationRecord] = []
        for med in _section(data, "medications"):
            if not isinstance(med, dict) or not med.get("id"):
                continue
            med_id = str(med["id"])
            out.append(
                MedicationRecord(
                    medication_id=med_id,
                    name=str(med.get("name") or med_id),
                    constraints=tuple(
                        constraint_from_dict(c)
                        for c in med.get("dosageConstraints") or []
                    ),
                    log=tuple(sorted(logs.get(med_id, []), key=lambda e: e.timestamp)),
                )
            )
        return out

    def load_summary_state(self, path: Path) -> SummaryRegenerationState | None:
        """Regeneration counters of the stored context summary, if any."""
        raw = self.load(path).get("context_summary")
        if isinstance(raw, str):
            raw = json.loads(raw)
        if not isinstance(raw, dict):
            return None
        return summary_state_from_dict(raw)


def _section(data: dict[str, Any], key: str) -> list[Any]:
    """Return a list section; tolerates sections stored as JSON-encoded strings."""
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        value = json.loads(value)
    if not isinstance(value, list):
        logger.warning("Ignoring backup section %r: expected a list", key)
        return []
    return value
