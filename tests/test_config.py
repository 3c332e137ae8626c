from __future__ import annotations

import json
import logging

import pytest

from wellness_engine.config import EngineConfig
from wellness_engine.log import ENGINE_LOGGER, JSONFormatter, setup_logging


def test_defaults() -> None:
    config = EngineConfig()
    assert config.full_regen_interval == 4
    assert config.recent_data_threshold == 6000
    assert config.minimum_entries_for_summary == 3
    assert config.tzinfo is not None


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WELLNESS_TZ", "America/Argentina/Buenos_Aires")
    monkeypatch.setenv("WELLNESS_FULL_REGEN_INTERVAL", "6")
    monkeypatch.setenv("WELLNESS_LOG_FORMAT", "json")
    config = EngineConfig.from_env()
    assert config.timezone == "America/Argentina/Buenos_Aires"
    assert config.full_regen_interval == 6
    assert config.log_format == "json"


def test_invalid_values() -> None:
    with pytest.raises(ValueError):
        EngineConfig(full_regen_interval=0)
    with pytest.raises(ValueError):
        EngineConfig(log_format="xml")
    with pytest.raises(ValueError, match="Unknown timezone"):
        _ = EngineConfig(timezone="Mars/Olympus_Mons").tzinfo


def test_json_formatter_emits_one_object() -> None:
    record = logging.LogRecord(
        "wellness_engine.dosage", logging.INFO, __file__, 1, "refused %s", ("x",), None
    )
    entry = json.loads(JSONFormatter().format(record))
    assert entry["level"] == "info"
    assert entry["logger"] == "wellness_engine.dosage"
    assert entry["message"] == "refused x"
    assert "constraint" not in entry


def test_json_formatter_carries_engine_context() -> None:
    record = logging.LogRecord(
        "wellness_engine.dosage", logging.DEBUG, __file__, 1, "refused", (), None
    )
    record.constraint = "maxPerPeriod"
    entry = json.loads(JSONFormatter().format(record))
    assert entry["constraint"] == "maxPerPeriod"
    assert "generation" not in entry


def test_setup_logging_configures_engine_logger_only() -> None:
    engine = logging.getLogger(ENGINE_LOGGER)
    root_handlers = list(logging.getLogger().handlers)
    try:
        setup_logging("json", logging.DEBUG)
        setup_logging("json", logging.DEBUG)
        assert len(engine.handlers) == 1
        assert isinstance(engine.handlers[0].formatter, JSONFormatter)
        assert engine.level == logging.DEBUG
        assert engine.propagate is False
        assert logging.getLogger().handlers == root_handlers
    finally:
        for handler in list(engine.handlers):
            engine.removeHandler(handler)
        engine.setLevel(logging.NOTSET)
        engine.propagate = True
