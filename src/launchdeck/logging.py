"""Logger setup for the launcher: a console stream plus a persistent debug file.

Every handler formats through :class:`RedactingFormatter`, so credentials that
reach a log call through script output or exception text are masked before
they are written anywhere.
"""

from __future__ import annotations

import logging as py_logging
import sys
from pathlib import Path
from typing import TextIO

from launchdeck.ui.services.security import mask_secrets

ROOT_LOGGER_NAME = "launchdeck"
LOG_LEVELS = {
    "DEBUG": py_logging.DEBUG,
    "INFO": py_logging.INFO,
    "WARN": py_logging.WARNING,
    "ERROR": py_logging.ERROR,
}
DEFAULT_LOG_PATH = Path("~/.config/launchdeck/logs/launchdeck.log")
_CWD_LOG_PATH = Path(".launchdeck/logs/launchdeck.log")
_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d %(message)s"


class RedactingFormatter(py_logging.Formatter):
    """Formats as usual, then masks secrets in the full line including tracebacks."""

    def format(self, record: py_logging.LogRecord) -> str:
        return mask_secrets(super().format(record))


def level_from_name(name: str) -> int:
    normalized = name.strip().upper()
    if normalized == "WARNING":
        normalized = "WARN"
    return LOG_LEVELS.get(normalized, py_logging.INFO)


def _absolute(path: str | Path) -> Path:
    candidate = Path(path)
    try:
        candidate = candidate.expanduser()
    except RuntimeError:
        # No resolvable home directory; keep the literal path.
        pass
    return candidate if candidate.is_absolute() else candidate.resolve()


def default_log_path() -> Path:
    try:
        return _absolute(DEFAULT_LOG_PATH.expanduser())
    except RuntimeError:
        return _absolute(Path.cwd() / _CWD_LOG_PATH)


def _file_handler(path: Path, formatter: py_logging.Formatter) -> py_logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = py_logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(py_logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def _reset_handlers(logger: py_logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def configure_logging(
    level: str = "INFO",
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
) -> py_logging.Logger:
    """(Re)configure the ``launchdeck`` logger tree.

    The console handler follows ``level``; the file handler always records DEBUG
    so a support log is complete regardless of the console verbosity. Calling
    this again replaces the previous handlers.
    """
    resolved = level_from_name(level)
    formatter = RedactingFormatter(_FORMAT)

    logger = py_logging.getLogger(ROOT_LOGGER_NAME)
    _reset_handlers(logger)
    logger.setLevel(resolved)
    logger.propagate = False

    console = py_logging.StreamHandler(stream or sys.stderr)
    console.setLevel(resolved)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        log_path = _absolute(log_file)
        try:
            logger.addHandler(_file_handler(log_path, formatter))
            logger.setLevel(py_logging.DEBUG)
        except OSError as exc:
            logger.warning("File logging disabled for %s: %s", log_path, exc)

    return logger
