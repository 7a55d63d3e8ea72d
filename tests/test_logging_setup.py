"""Tests for the JSONL logging sink."""

import json
import logging

import pytest

from reversal_rooms.logging_setup import JsonlHandler
from reversal_rooms.logging_setup import init_json_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def _read(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


def test_writes_one_json_object_per_record(tmp_path):
    log_file = tmp_path / "logs" / "run.jsonl"
    init_json_logging(log_file, "info")

    logger = logging.getLogger("reversal_rooms.test")
    logger.info("Loading: ui", extra={"event": "module.activate", "module_id": "ui"})
    logger.debug("not written")

    [record] = _read(log_file)
    assert record["lvl"] == "INFO"
    assert record["logger"] == "reversal_rooms.test"
    assert record["event"] == "module.activate"
    assert record["message"] == "Loading: ui"
    assert record["module_id"] == "ui"
    assert record["schema"] == {"name": "reversal-rooms.log", "ver": "1.0.0"}
    assert "ts" in record


def test_level_is_case_insensitive(tmp_path):
    init_json_logging(tmp_path / "run.jsonl", "debug")
    assert logging.getLogger().level == logging.DEBUG


def test_reinitializing_replaces_handler(tmp_path):
    init_json_logging(tmp_path / "first.jsonl", "INFO")
    init_json_logging(tmp_path / "second.jsonl", "INFO")

    handlers = [h for h in logging.getLogger().handlers if isinstance(h, JsonlHandler)]
    assert [h.path.name for h in handlers] == ["second.jsonl"]


def test_exception_is_recorded(tmp_path):
    log_file = tmp_path / "run.jsonl"
    init_json_logging(log_file, "INFO")

    try:
        raise ValueError("bad manifest")
    except ValueError:
        logging.getLogger("reversal_rooms.test").exception("Discovery failed")

    [record] = _read(log_file)
    assert record["lvl"] == "ERROR"
    assert "ValueError: bad manifest" in record["exception"]


def test_dict_messages_are_merged(tmp_path):
    handler = JsonlHandler(tmp_path / "run.jsonl")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, {"passes": 3}, None, None)

    formatted = handler.format_record(record)

    assert formatted["passes"] == 3
    assert formatted["event"] is None


def test_path_and_level_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("REVERSAL_ROOMS_LOG_PATH", str(tmp_path / "env" / "run.jsonl"))
    monkeypatch.setenv("REVERSAL_ROOMS_LOG_LEVEL", "warning")

    init_json_logging(default_dir=tmp_path)

    assert logging.getLogger().level == logging.WARNING
    [handler] = [h for h in logging.getLogger().handlers if isinstance(h, JsonlHandler)]
    assert handler.path == tmp_path / "env" / "run.jsonl"


def test_default_dir_without_environment(tmp_path, monkeypatch):
    monkeypatch.delenv("REVERSAL_ROOMS_LOG_PATH", raising=False)

    init_json_logging(default_dir=tmp_path)

    [handler] = [h for h in logging.getLogger().handlers if isinstance(h, JsonlHandler)]
    assert handler.path == tmp_path / "reversal-rooms.log.jsonl"
