"""Logging setup for the CLI.

Format is chosen via ``EngineConfig.log_format``: "text" (default) or "json".
Only the ``wellness_engine`` logger tree is configured; host applications
embedding the engine keep their own root handlers.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

ENGINE_LOGGER = "wellness_engine"

# Context attached by engine modules through ``extra=``.
CONTEXT_FIELDS = ("constraint", "generation", "command")

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per line, carrying the engine's context fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(log_format: str = "text", level: int = logging.INFO) -> None:
    """Attach one stderr handler to the engine logger, replacing a previous one."""
    engine = logging.getLogger(ENGINE_LOGGER)
    engine.setLevel(level)
    engine.propagate = False
    for handler in list(engine.handlers):
        engine.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        JSONFormatter() if log_format == "json" else logging.Formatter(TEXT_FORMAT)
    )
    engine.addHandler(handler)
