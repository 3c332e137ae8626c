"""Engine configuration (defaults + environment overrides)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import tzinfo

from dateutil import tz


@dataclass(frozen=True)
class EngineConfig:
    """Tunables shared by the CLI and the regeneration policy."""

    timezone: str = "UTC"
    full_regen_interval: int = 4
    recent_data_threshold: int = 6000
    minimum_entries_for_summary: int = 3
    chars_per_token: int = 4
    log_format: str = "text"

    def __post_init__(self) -> None:
        if self.full_regen_interval < 1:
            raise ValueError("full_regen_interval must be >= 1")
        if self.chars_per_token < 1:
            raise ValueError("chars_per_token must be >= 1")
        if self.log_format not in ("text", "json"):
            raise ValueError(f"Unknown log format: {self.log_format}")

    @property
    def tzinfo(self) -> tzinfo:
        """Resolve ``timezone`` to a tzinfo.

        Raises:
            ValueError: If the zone name is unknown.
        """
        zone = tz.gettz(self.timezone)
        if zone is None:
            raise ValueError(f"Unknown timezone: {self.timezone}")
        return zone

    @classmethod
    def from_env(cls) -> EngineConfig:
        return cls(
            timezone=os.environ.get("WELLNESS_TZ", "UTC"),
            full_regen_interval=int(
                os.environ.get("WELLNESS_FULL_REGEN_INTERVAL", "4")
            ),
            recent_data_threshold=int(
                os.environ.get("WELLNESS_RECENT_DATA_THRESHOLD", "6000")
            ),
            minimum_entries_for_summary=int(
                os.environ.get("WELLNESS_MIN_ENTRIES_FOR_SUMMARY", "3")
            ),
            chars_per_token=int(os.environ.get("WELLNESS_CHARS_PER_TOKEN", "4")),
            log_format=os.environ.get("WELLNESS_LOG_FORMAT", "text"),
        )
