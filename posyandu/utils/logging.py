# posyandu/utils/logging.py
"""
Logging setup shared by the wizard core, the store and the API.

Console output is one line per record with a UTC timestamp, level and
logger name; an optional plain file handler can be added.
"""
from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Optional


class StructuredFormatter(logging.Formatter):
    """Single-line formatter: [timestamp] LEVEL [logger] message."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).isoformat()
        message = f"[{timestamp}] {record.levelname:8} [{record.name}] {record.getMessage()}"
        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure the `posyandu` logger tree.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ...)
        log_file: Optional file path for an additional plain-text log
    """
    logger = logging.getLogger("posyandu")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
        ))
        logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
