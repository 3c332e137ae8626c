"""CLI para consultar rachas, dosis y regeneración del resumen desde un backup."""

from __future__ import annotations

import argparse
import logging
from datetime import date, datetime
from pathlib import Path

from wellness_engine.adherence import adherence_summary
from wellness_engine.codec import parse_timestamp
from wellness_engine.config import EngineConfig
from wellness_engine.dosage import check_dose
from wellness_engine.errors import WellnessEngineError
from wellness_engine.log import setup_logging
from wellness_engine.model import SummaryRegenerationState
from wellness_engine.regeneration import needs_full_regeneration, next_mode
from wellness_engine.sources.backup import BackupPaths, BackupSource, MedicationRecord
from wellness_engine.streak import compute_behavior_streak

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Rachas, validación de dosis y política de regeneración."
    )
    parser.add_argument(
        "--backup-dir",
        default=str(Path.home() / "wellness" / "backups"),
        help="Directorio con backup_*.json (default: ~/wellness/backups).",
    )
    parser.add_argument(
        "--backup",
        default=None,
        help="Archivo de backup explícito (default: el más reciente).",
    )
    parser.add_argument(
        "--now",
        default=None,
        help="Instante de evaluación ISO-8601 (default: ahora).",
    )
    parser.add_argument("--verbose", action="store_true", help="Log DEBUG.")
    sub = parser.add_subparsers(dest="command", required=True)

    streak = sub.add_parser("streak", help="Racha actual y máxima por hábito.")
    streak.add_argument("--habit", default=None, help="Id de hábito.")

    dose = sub.add_parser("dose-check", help="¿Se puede tomar una dosis ahora?")
    dose.add_argument("--medication", required=True, help="Id de medicamento.")
    dose.add_argument("--amount", type=float, default=None)

    adherence = sub.add_parser("adherence", help="Adherencia en un rango.")
    adherence.add_argument("--medication", required=True)
    adherence.add_argument("--start", type=date.fromisoformat, required=True)
    adherence.add_argument("--end", type=date.fromisoformat, required=True)
    adherence.add_argument("--per-day", type=int, default=1)

    regen = sub.add_parser("regen", help="¿Toca regeneración completa del resumen?")
    regen.add_argument("--generation", type=int, default=None)
    regen.add_argument("--last-full", type=int, default=None)
    regen.add_argument("--interval", type=int, default=None)
    return parser.parse_args()


def main() -> int:
    """Run the CLI.

    Returns:
        Exit code (0 on success, 2 on bad input or data).
    """
    ns = parse_args()
    config = EngineConfig.from_env()
    setup_logging(config.log_format, logging.DEBUG if ns.verbose else logging.INFO)

    try:
        zone = config.tzinfo
        now = parse_timestamp(ns.now, zone) if ns.now else datetime.now(tz=zone)
        if ns.command == "regen":
            return _run_regen(ns, config)

        source = BackupSource(BackupPaths(root=Path(ns.backup_dir).expanduser()))
        if ns.backup:
            path = Path(ns.backup).expanduser()
        else:
            source.validate()
            path = source.newest_json()

        if ns.command == "streak":
            return _run_streak(source, path, now, ns.habit, config)
        medication = _find_medication(source, path, ns.medication, config)
        if ns.command == "dose-check":
            return _run_dose_check(medication, now, ns.amount, config)
        summary = adherence_summary(
            medication.log, ns.start, ns.end, ns.per_day, config.tzinfo
        )
        print(f"OK: {medication.name} {summary.start_date} -> {summary.end_date}")
        print(
            f"taken={summary.total_taken} skipped={summary.total_skipped} "
            f"missed={summary.total_missed} expected={summary.total_expected} "
            f"rate={summary.adherence_rate:.1f}%"
        )
        return 0
    except (WellnessEngineError, FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc, extra={"command": ns.command})
        return 2


def _run_streak(
    source: BackupSource,
    path: Path,
    now: datetime,
    habit: str | None,
    config: EngineConfig,
) -> int:
    events = source.load_completions(path, config.tzinfo)
    habit_ids = [habit] if habit else sorted({e.behavior_id for e in events})
    print(f"OK: Backup file: {path}")
    for habit_id in habit_ids:
        result = compute_behavior_streak(events, habit_id, now, tz=config.tzinfo)
        print(
            f"{habit_id}: current={result.current_streak} "
            f"longest={result.longest_streak} last={result.last_event_date} "
            f"active={'yes' if result.is_active else 'no'}"
        )
    return 0


def _find_medication(
    source: BackupSource, path: Path, medication_id: str, config: EngineConfig
) -> MedicationRecord:
    for med in source.load_medications(path, config.tzinfo):
        if med.medication_id == medication_id:
            return med
    raise ValueError(f"Medication not found: {medication_id}")


def _run_dose_check(
    medication: MedicationRecord,
    now: datetime,
    amount: float | None,
    config: EngineConfig,
) -> int:
    result = check_dose(
        medication.constraints, medication.log, now, amount, tz=config.tzinfo
    )
    if result.permitted:
        print(f"OK: {medication.name} permitted at {now.isoformat()}")
        if result.reason:
            print(f"Note: {result.reason}")
        return 0
    print(f"REFUSED: {medication.name}: {result.reason}")
    if result.next_permitted_time is not None:
        print(f"Next permitted: {result.next_permitted_time.isoformat()}")
    return 1


def _run_regen(ns: argparse.Namespace, config: EngineConfig) -> int:
    interval = ns.interval if ns.interval is not None else config.full_regen_interval
    if ns.generation is not None:
        state = SummaryRegenerationState(
            generation_number=ns.generation,
            last_full_regen_number=ns.last_full or 1,
        )
    else:
        source = BackupSource(BackupPaths(root=Path(ns.backup_dir).expanduser()))
        path = Path(ns.backup).expanduser() if ns.backup else source.newest_json()
        loaded = source.load_summary_state(path)
        if loaded is None:
            print("OK: no summary stored yet; next regeneration is full")
            return 0
        state = loaded

    full = needs_full_regeneration(state, interval)
    print(
        f"OK: generation #{state.generation_number}, last full "
        f"#{state.last_full_regen_number}, interval {interval}"
    )
    print(f"next: {next_mode(state, interval).value} (full={'yes' if full else 'no'})")
    return 0
