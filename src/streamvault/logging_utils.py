"""Logging helpers for :mod:`streamvault`.

Everything logs through the ``streamvault`` logger. :func:`configure_logging`
may be called repeatedly; later calls only adjust the level or swap the log
file. Level and destination fall back to ``STREAMVAULT_LOG_LEVEL`` and
``STREAMVAULT_LOG_FILE``.
"""

from __future__ import annotations

import logging
import os
import threading
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

__all__ = [
    "configure_logging",
    "get_log_file_path",
    "get_logger",
    "get_recent_messages",
]

ROOT_LOGGER = "streamvault"
LEVEL_ENV = "STREAMVAULT_LOG_LEVEL"
FILE_ENV = "STREAMVAULT_LOG_FILE"
DEFAULT_LOG_PATH = Path.home() / ".cache" / "streamvault.log"
RECENT_CAPACITY = 200

_FORMATTER = logging.Formatter(
    fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


class RecentMessages(logging.Handler):
    """Ring buffer of formatted records shown in the status view."""

    def __init__(self, capacity: int = RECENT_CAPACITY) -> None:
        super().__init__()
        self._lines: deque[str] = deque(maxlen=capacity)
        self._guard = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
        except Exception:  # pragma: no cover - logging reports formatter errors
            self.handleError(record)
            return
        with self._guard:
            self._lines.append(line)

    def snapshot(self) -> tuple[str, ...]:
        with self._guard:
            return tuple(self._lines)


@dataclass
class _State:
    level: int = logging.INFO
    recent: Optional[RecentMessages] = None
    file_handler: Optional[logging.FileHandler] = None
    log_path: Optional[Path] = None

    @property
    def configured(self) -> bool:
        return self.recent is not None


_state = _State()


def _parse_level(value: str) -> int:
    text = value.strip().upper()
    if text.isdigit():
        number = int(text)
        if 0 <= number <= logging.CRITICAL:
            return number
    level = logging.getLevelName(text)
    return level if isinstance(level, int) else logging.INFO


def _swap_file_handler(logger: logging.Logger, destination: str) -> None:
    """Replace the file handler; an empty *destination* disables file logging."""

    if _state.file_handler is not None:
        logger.removeHandler(_state.file_handler)
        _state.file_handler.close()
    _state.file_handler = None
    _state.log_path = None
    if not destination:
        return

    path = Path(destination).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf8")
    except OSError:
        logger.warning("Could not open log file %s; file logging disabled", path)
        return
    handler.setFormatter(_FORMATTER)
    logger.addHandler(handler)
    _state.file_handler = handler
    _state.log_path = path


def configure_logging(
    *,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """Set up the package logger, or adjust it if already set up."""

    logger = logging.getLogger(ROOT_LOGGER)
    requested_level = level if level is not None else os.getenv(LEVEL_ENV)
    destination = log_file if log_file is not None else os.getenv(FILE_ENV)

    if not _state.configured:
        logger.propagate = False
        console = logging.StreamHandler()
        console.setFormatter(_FORMATTER)
        logger.addHandler(console)
        _state.recent = RecentMessages()
        _state.recent.setFormatter(_FORMATTER)
        logger.addHandler(_state.recent)
        if destination is None:
            destination = str(DEFAULT_LOG_PATH)
        _state.level = logging.INFO

    if requested_level is not None:
        _state.level = _parse_level(requested_level)
    if destination is not None:
        _swap_file_handler(logger, destination)

    logger.setLevel(_state.level)
    for handler in logger.handlers:
        handler.setLevel(_state.level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return *name* as a child of the package logger."""

    root = configure_logging() if not _state.configured else logging.getLogger(ROOT_LOGGER)
    if not name or name == ROOT_LOGGER:
        return root
    if name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def get_log_file_path() -> Optional[Path]:
    return _state.log_path


def get_recent_messages() -> tuple[str, ...]:
    """Return the buffered log lines, oldest first."""

    if _state.recent is None:
        return ()
    return _state.recent.snapshot()
