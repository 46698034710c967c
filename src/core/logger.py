"""Logging shared by every tracker module.

Modules import the module-level ``logger``. The log file comes from
``$TRACKER_LOG_FILE`` (default ``output/tracker.log``; an empty value keeps
console output only) and the level from ``$LOG_LEVEL``.
"""

import logging
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(module)s.%(funcName)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_FILE = "output/tracker.log"


def _level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logger(
    name: str = "tracker",
    log_file: str | None = None,
    level: str | None = None,
) -> logging.Logger:
    """
    Configure ``name`` with a console handler and, when a path is set, a file handler.

    Calling it again for an already configured logger returns it unchanged.

    Args:
        name (str): The name of the logger.
        log_file (str | None): Log file path; ``None`` reads ``$TRACKER_LOG_FILE``.
        level (str | None): Level name; ``None`` reads ``$LOG_LEVEL`` (default INFO).

    Returns:
        logging.Logger: The configured logger instance.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(_level(level or os.getenv("LOG_LEVEL", "INFO")))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    path = log_file if log_file is not None else os.getenv("TRACKER_LOG_FILE", DEFAULT_LOG_FILE)
    if path:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


logger = setup_logger()
