"""
Logging utilities.

WHAT: Console and file logging for the inbox service
WHY: Fetch commits, discarded generations and sends must be traceable
     after the fact, per session
HOW: stdlib logging; console at INFO, file at DEBUG with source location,
     chatty HTTP libraries capped at WARNING
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from ..core.config import settings

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(pathname)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# httpx/httpcore log every request and connection event at INFO/DEBUG
QUIET_LOGGERS = ("httpx", "httpcore")


def _file_handler(log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure root logging.

    Safe to call more than once: previous handlers are replaced.

    Args:
        level: Root level name, defaults to settings.LOG_LEVEL
        log_file: File path, defaults to settings.LOG_FILE; "" disables the file
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    target = settings.LOG_FILE if log_file is None else log_file

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if target:
        root_logger.addHandler(_file_handler(Path(target)))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info(f"Logging initialized (level={level_name}, file={target or 'disabled'})")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
