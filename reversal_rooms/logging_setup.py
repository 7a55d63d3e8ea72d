"""
JSONL logging bootstrap.
Initializes a single canonical JSONL sink early in CLI startup.
"""

import json
import logging
import os
from datetime import UTC
from datetime import datetime
from pathlib import Path

LOG_PATH_ENV_VAR = "REVERSAL_ROOMS_LOG_PATH"
LOG_LEVEL_ENV_VAR = "REVERSAL_ROOMS_LOG_LEVEL"
DEFAULT_FILENAME = "reversal-rooms.log.jsonl"
DEFAULT_LEVEL = "INFO"

# Attributes every LogRecord carries; anything else on a record came from ``extra=``
_RECORD_ATTRIBUTES = frozenset(
    (
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "name",
        "message",
    )
)


class JsonlHandler(logging.Handler):
    def __init__(self, path: str | Path):
        super().__init__()
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def format_record(self, record: logging.LogRecord) -> dict:
        base = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "lvl": record.levelname,
            "schema": {"name": "reversal-rooms.log", "ver": "1.0.0"},
            "logger": record.name,
            "event": getattr(record, "event", None),
            "message": record.getMessage(),
        }
        # Merge extras if the message is a dict
        if isinstance(record.msg, dict):
            base.update(record.msg)
        for k, v in record.__dict__.items():
            if k in _RECORD_ATTRIBUTES:
                continue
            base.setdefault(k, v)
        if record.exc_info:
            base["exception"] = logging.Formatter().formatException(record.exc_info)
        return base

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(self.format_record(record), ensure_ascii=False, default=str)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:
            self.handleError(record)


def init_json_logging(
    path: str | Path | None = None,
    level: str | None = None,
    default_dir: str | Path | None = None,
) -> None:
    """Install the JSONL sink on the root logger.

    Path: ``path``, else $REVERSAL_ROOMS_LOG_PATH, else DEFAULT_FILENAME in
    ``default_dir`` (or the current directory). Level: ``level``, else
    $REVERSAL_ROOMS_LOG_LEVEL, else INFO.
    """
    path = path or os.environ.get(LOG_PATH_ENV_VAR) or Path(default_dir or ".") / DEFAULT_FILENAME
    level = (level or os.environ.get(LOG_LEVEL_ENV_VAR) or DEFAULT_LEVEL).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    # Remove existing handlers of the same kind to avoid duplicates
    for h in list(root.handlers):
        if isinstance(h, JsonlHandler):
            root.removeHandler(h)
            h.close()
    root.addHandler(JsonlHandler(path))
