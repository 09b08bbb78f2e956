import json
import logging

import pytest

from bookapi.errors import CliError, CliErrorKind
from bookapi.logging_setup import init_logging


@pytest.fixture
def saved_root(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    logger = logging.getLogger()
    handlers, level = list(logger.handlers), logger.level
    yield handlers
    logger.handlers[:] = handlers
    logger.setLevel(level)


def _added_handlers(before):
    return [h for h in logging.getLogger().handlers if h not in before]


def test_production_level_and_json(saved_root):
    result = init_logging("production")
    assert result is None
    added = _added_handlers(saved_root)
    assert len(added) == 1
    assert logging.getLogger().getEffectiveLevel() == logging.ERROR
    record = logging.LogRecord("x", logging.ERROR, "f.py", 3, "boom %s", ("now",), None)
    data = json.loads(added[0].format(record))
    assert data["fields"]["message"] == "boom now"
    assert data["level"] == "ERROR"


def test_development_level(saved_root):
    result = init_logging("development")
    assert result is None
    added = _added_handlers(saved_root)
    assert len(added) == 1
    assert logging.getLogger().getEffectiveLevel() == logging.INFO


def test_env_override(saved_root, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    result = init_logging("production")
    assert result is None
    added = _added_handlers(saved_root)
    assert len(added) == 1
    assert logging.getLogger().getEffectiveLevel() == logging.DEBUG


def test_second_init_fails(saved_root):
    init_logging("test")
    with pytest.raises(CliError) as info:
        init_logging("test")
    assert info.value.kind is CliErrorKind.CONFIG