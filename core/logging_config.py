"""Logging setup: JSON lines to a rotating file, optional console output."""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path

ROOT_LOGGER = "weekplanner"


class JSONFormatter(logging.Formatter):
    """Format log records as one JSON object per line."""

    _STANDARD_ATTRS = {
        "name", "msg", "args", "created", "filename", "funcName", "levelname",
        "levelno", "lineno", "module", "msecs", "message", "pathname", "process",
        "processName", "relativeCreated", "thread", "threadName", "exc_info",
        "exc_text", "stack_info", "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }
        extra = {k: v for k, v in record.__dict__.items() if k not in self._STANDARD_ATTRS}
        if extra:
            data["extra"] = extra
        return json.dumps(data, default=str)


def setup_logging(
    log_dir: Path | None = None,
    level: int = logging.INFO,
    console: bool = False,
    extra_handlers: list[logging.Handler] | None = None,
) -> logging.Logger:
    """Configure the package logger. Safe to call more than once."""
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / "weekplanner.log",
            maxBytes=1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S")
        )
        root.addHandler(console_handler)

    for h in extra_handlers or []:
        root.addHandler(h)

    if not root.handlers:
        root.addHandler(logging.NullHandler())

    root.debug("Logging initialized", extra={"log_dir": str(log_dir) if log_dir else None})
    return root


def get_logger(name: str) -> logging.Logger:
    """Module logger under the package namespace ('core.store' -> 'weekplanner.core.store')."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
