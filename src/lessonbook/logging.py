"""Centralized logging configuration for lessonbook.

All package loggers hang off the "lessonbook" logger. The server's uvicorn
loggers are routed to the same handlers so that request lines and
registration events end up in one file.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Default configuration
DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_FILE = "lessonbook.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = "INFO"

ROOT_LOGGER = "lessonbook"
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

# Log format
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_REDACTIONS = [
    (re.compile(r"[\w.+-]+@([\w-]+\.[\w.-]+)", re.IGNORECASE), r"[EMAIL]@\1"),
    (re.compile(r"Bearer [a-zA-Z0-9._-]+", re.IGNORECASE), "Bearer [REDACTED]"),
    (re.compile(r"(access_?code=)[a-zA-Z0-9._-]+", re.IGNORECASE), r"\1[REDACTED]"),
]


def sanitize_for_log(text: str) -> str:
    """Remove personal and secret data from log output.

    Identities in this system are usually e-mail addresses of parents and
    staff, so they are masked down to their domain.

    Args:
        text: Text that may contain sensitive data.

    Returns:
        Sanitized text safe for logging.
    """
    result = text
    for pattern, replacement in _REDACTIONS:
        result = pattern.sub(replacement, result)
    return result


class SanitizingFormatter(logging.Formatter):
    """Formatter that runs every rendered line through sanitize_for_log.

    Covers messages from third-party loggers (uvicorn access lines carry
    query strings) that never pass through sanitize_for_log themselves.
    """

    def format(self, record: logging.LogRecord) -> str:
        return sanitize_for_log(super().format(record))


def _resolve_level(level: str | None) -> int:
    if level is None:
        level = os.environ.get("LESSONBOOK_LOG_LEVEL", DEFAULT_LOG_LEVEL)
    return getattr(logging, level.upper(), logging.INFO)


def setup_logging(
    log_dir: str | Path | None = None,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    level: str | None = None,
    console: bool = True,
    capture_uvicorn: bool = False,
) -> logging.Logger:
    """Set up logging with a rotating file handler.

    Args:
        log_dir: Directory for log files. Defaults to LESSONBOOK_LOG_DIR,
            then 'logs' in the current directory.
        log_file: Log file name.
        max_bytes: Maximum size per log file before rotation.
        backup_count: Number of rotated files to keep.
        level: Log level name. Defaults to LESSONBOOK_LOG_LEVEL, then INFO.
        console: Whether to also log to stderr.
        capture_uvicorn: Send uvicorn's loggers to the same handlers.

    Returns:
        The root lessonbook logger.
    """
    if log_dir is None:
        log_dir = os.environ.get("LESSONBOOK_LOG_DIR", DEFAULT_LOG_DIR)
    log_path = Path(log_dir) / log_file
    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_level = _resolve_level(level)

    formatter = SanitizingFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)

    names = [ROOT_LOGGER, *(UVICORN_LOGGERS if capture_uvicorn else ())]
    for name in names:
        target = logging.getLogger(name)
        for old in target.handlers:
            old.close()
        target.handlers = list(handlers)
        target.setLevel(log_level)
        if name != ROOT_LOGGER:
            target.propagate = False

    logger = logging.getLogger(ROOT_LOGGER)
    logger.info(
        "lessonbook logging initialized (level=%s, file=%s)",
        logging.getLevelName(log_level),
        log_path,
    )
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a component.

    Args:
        name: Component name (e.g., 'registrations', 'cache').
              Will be prefixed with 'lessonbook.'.

    Returns:
        Logger instance for the component.
    """
    if not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
