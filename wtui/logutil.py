"""Logging setup: JSON log file under the XDG state directory, task-id tagging."""

from __future__ import annotations

import contextvars
import json
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

_task_id: contextvars.ContextVar[str] = contextvars.ContextVar("wtui_task_id", default="")

_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


@contextmanager
def with_task_id(task_id: str) -> Iterator[None]:
    """Tag every record logged inside the block with task_id."""
    token = _task_id.set(task_id)
    try:
        yield
    finally:
        _task_id.reset(token)


def task_id_from_context() -> str:
    """Return the task id set by the innermost with_task_id block, or ''."""
    return _task_id.get()


class _TaskIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        tid = task_id_from_context()
        if tid:
            record.task_id = tid
        return True


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .astimezone()
            .isoformat(),
            "level": record.levelname,
            "msg": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def xdg_state_dir(app: str) -> str:
    """Return $XDG_STATE_HOME/app, or ~/.local/state/app."""
    base = os.environ.get("XDG_STATE_HOME")
    if base:
        return os.path.join(base, app)
    try:
        home = str(Path.home())
    except RuntimeError:
        home = ""
    return os.path.join(home, ".local", "state", app)


def parse_log_level(level: str) -> int:
    """Map a level name to a logging level; unknown names mean INFO."""
    return {
        "DEBUG": logging.DEBUG,
        "WARN": logging.WARNING,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
    }.get(level, logging.INFO)


def _reset(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def init_logger(app: str, level: int) -> logging.Logger:
    """Return a logger writing JSON lines to <state dir>/<app>.log.

    If the log file cannot be opened, a warning is written to stderr and a
    stderr logger at WARNING level is returned instead.
    """
    log_dir = xdg_state_dir(app)
    log_path = os.path.join(log_dir, f"{app}.log")
    try:
        os.makedirs(log_dir, mode=0o750, exist_ok=True)
    except OSError as exc:
        return _fallback_logger(app, f"create log directory {log_dir}: {exc}")
    try:
        handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    except OSError as exc:
        return _fallback_logger(app, f"open log file {log_path}: {exc}")
    try:
        os.chmod(log_path, 0o640)
    except OSError:
        pass

    handler.setFormatter(_JsonFormatter())
    handler.addFilter(_TaskIdFilter())

    logger = logging.getLogger(app)
    _reset(logger)
    logger.setLevel(level)
    logger.propagate = False
    logger.addHandler(handler)
    return logger


def _fallback_logger(app: str, reason: str) -> logging.Logger:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("time=%(asctime)s level=%(levelname)s msg=%(message)s")
    )
    logger = logging.getLogger(app)
    _reset(logger)
    logger.setLevel(logging.WARNING)
    logger.propagate = False
    logger.addHandler(handler)
    logger.warning("could not open log file: %s", reason)
    return logger