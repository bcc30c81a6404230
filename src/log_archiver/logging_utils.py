"""Logging setup shared by the CLI and archive workers."""

from __future__ import annotations

import logging
from pathlib import Path

# Worker threads log concurrently, so records carry the thread name.
DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
PACKAGE_LOGGER_NAME = "log_archiver"


def parse_log_level(value: str | int) -> int:
    """Map `"info"`, `"DEBUG"`, `20` and similar to a logging level number."""

    if isinstance(value, int):
        return value
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level: {value}")
    return level


def configure_logging(log_file: Path, level: str | int = logging.INFO) -> logging.Logger:
    """Send records to the console and to `log_file`, replacing existing root handlers."""

    numeric_level = parse_log_level(level)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(fmt=DEFAULT_LOG_FORMAT, datefmt=DEFAULT_DATE_FORMAT)
    handlers: list[logging.Handler] = [
        logging.StreamHandler(),
        logging.FileHandler(log_file, encoding="utf-8"),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(numeric_level)
        root_logger.addHandler(handler)

    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    logger.setLevel(numeric_level)
    return logger
