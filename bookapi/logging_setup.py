"""Process-wide logging configuration."""

from __future__ import annotations

import json
import logging
import os
import sys

from bookapi.errors import CliError, CliErrorKind

LEVEL_ENV = "LOG_LEVEL"
_MARKER = "_bookapi_handler"


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(
            {
                "timestamp": self.formatTime(record),
                "level": record.levelname,
                "fields": {"message": record.getMessage()},
                "target": record.name,
                "filename": record.pathname,
                "line_number": record.lineno,
                "threadName": record.threadName,
                "threadId": record.thread,
            }
        )


def _level(default: str) -> int:
    name = os.environ.get(LEVEL_ENV, "").strip().upper()
    level = logging.getLevelName(name) if name else None
    if isinstance(level, int):
        return level
    return logging.getLevelName(default.upper())


def init_logging(environment: str) -> None:
    """Install the global log handler; it may only be installed once."""
    root = logging.getLogger()
    if any(getattr(handler, _MARKER, False) for handler in root.handlers):
        raise CliError(
            CliErrorKind.CONFIG,
            "a global default trace dispatcher has already been set",
        )

    if environment == "production":
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(_JsonFormatter())
        level = _level("error")
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)s %(name)s [%(threadName)s %(thread)d] "
                "%(pathname)s:%(lineno)d\n  %(message)s"
            )
        )
        level = _level("info")

    setattr(handler, _MARKER, True)
    root.addHandler(handler)
    root.setLevel(level)