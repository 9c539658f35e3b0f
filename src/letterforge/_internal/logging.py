"""Logging setup shared by the supervisor and its worker processes."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

_ROOT_NAME = "letterforge"
_TEXT_FORMAT = "%(asctime)s [%(levelname)-8s] %(processName)s(%(process)d) %(name)s: %(message)s"


class _JsonFormatter(logging.Formatter):
    """One-line JSON log formatter.

    Keys: timestamp, level, logger, process, pid, message. Worker
    processes are named ``letterforge-worker-<index>`` so their lines
    can be told apart from the supervisor's.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "process": record.processName,
            "pid": record.process,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def setup_logging(
    level: int = logging.INFO,
    *,
    json_format: bool = False,
) -> logging.Logger:
    """Configure and return the root ``letterforge`` logger.

    Safe to call more than once: a second call only updates levels.
    Spawned workers start from a fresh interpreter and must call this
    themselves.

    Args:
        level: Logging level (e.g., ``logging.DEBUG``). Defaults to INFO.
        json_format: Emit JSON lines instead of human-readable text.

    Returns:
        The configured ``letterforge`` logger.
    """
    logger = logging.getLogger(_ROOT_NAME)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_format:
        formatter: logging.Formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child logger, e.g. ``get_logger("engine.reaper")``.

    Args:
        name: Dotted suffix appended to the ``letterforge.`` prefix.

    Returns:
        The child logger.
    """
    return logging.getLogger(f"{_ROOT_NAME}.{name}")
