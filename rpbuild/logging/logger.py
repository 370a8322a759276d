# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logger for rpbuild.

Every log entry is a single JSON line: timestamped, leveled, tagged with the
source module. The pipeline runs unattended from cron as often as from a shell,
so output has to be greppable and machine-parsable. print() is not used
anywhere in the package.

How this works:
  - We use Python's standard `logging` module under the hood, but replace the
    default formatter with JsonFormatter, which serializes every log record
    into a single JSON line.
  - Two handlers are possible: one for stdout, one optionally for a file.
  - `get_logger` is the only way to create loggers. Modules call it once at
    import time with their own __name__.
  - `configure_logging` re-levels every rpbuild logger after the config has
    been read, since module loggers exist before the CLI knows the level.

The JSON structure looks like:
  {"ts": "2026-...", "level": "INFO", "module": "rpbuild.steps.compiler", "msg": "Build finished", ...}
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

_ROOT_NAMESPACE = "rpbuild"

# LogRecord attributes that are plumbing, not caller context.
_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "relativeCreated",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "pathname",
        "filename",
        "module",
        "levelno",
        "levelname",
        "processName",
        "process",
        "threadName",
        "thread",
        "message",
        "msecs",
        "taskName",
    }
)


class JsonFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Each log entry contains four mandatory fields:
      ts: ISO 8601 UTC timestamp
      level: log level name
      module: the logger name (usually the Python module path)
      msg: the formatted message string

    Keyword args passed through `extra` are merged into the object as
    additional fields. Steps use this for exit codes, timings and paths.
    Exception tracebacks land under "exc".
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _resolve_log_level(level_name: str) -> int:
    """Turn a level name string into the corresponding logging constant."""
    upper = level_name.upper()
    if upper not in _VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level '{level_name}'. Must be one of: {', '.join(sorted(_VALID_LOG_LEVELS))}"
        )
    return getattr(logging, upper)


def _file_handler(log_file: Path, level: int) -> logging.FileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(str(log_file), encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


def get_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Create a structured JSON logger.

    Args:
        name: Logger name, typically __name__ of the calling module.
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        log_file: Optional path to a log file. If provided, logs go to both
                  stdout and the file.

    Returns:
        A configured logging.Logger that outputs structured JSON.
    """
    logger = logging.getLogger(name)
    level = _resolve_log_level(log_level)
    logger.setLevel(level)

    # Avoid stacking handlers if get_logger is called multiple times for the
    # same name (happens in tests).
    if logger.handlers:
        return logger

    stdout_handler = logging.StreamHandler(stream=sys.stdout)
    stdout_handler.setLevel(level)
    stdout_handler.setFormatter(JsonFormatter())
    logger.addHandler(stdout_handler)

    if log_file is not None:
        logger.addHandler(_file_handler(log_file, level))

    logger.propagate = False

    return logger


def configure_logging(log_level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """
    Apply a level (and optional log file) to every rpbuild logger created so far.

    Module loggers are built at import time with the default level, before
    the CLI has parsed --log-level or read the config file. This walks the
    logger registry and brings them all in line.
    """
    level = _resolve_log_level(log_level)

    for name in list(logging.Logger.manager.loggerDict):
        if name != _ROOT_NAMESPACE and not name.startswith(_ROOT_NAMESPACE + "."):
            continue
        logger = logging.getLogger(name)
        if not logger.handlers:
            continue
        logger.setLevel(level)
        has_file_handler = False
        for handler in logger.handlers:
            handler.setLevel(level)
            if isinstance(handler, logging.FileHandler):
                has_file_handler = True
        if log_file is not None and not has_file_handler:
            logger.addHandler(_file_handler(log_file, level))
