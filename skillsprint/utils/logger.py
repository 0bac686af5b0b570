"""
Logging configuration
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from skillsprint.config.settings import settings
from skillsprint.config.constants import LOG_FORMAT, LOG_DATE_FORMAT

# Libraries that log every backing store request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logger(
    name: str = "skillsprint",
    level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Setup and configure the application logger

    The console shows everything at the configured level. Request logs of
    the HTTP stack are kept at WARNING unless the level is DEBUG.

    Args:
        name: Logger name
        level: Level name (defaults to LOG_LEVEL)
        log_file: Extra file destination (defaults to LOG_FILE, none if unset)

    Returns:
        Configured logger instance
    """
    level_value = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)

    logger = logging.getLogger(name)
    logger.setLevel(level_value)
    logger.propagate = False
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level_value)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_file = log_file or settings.LOG_FILE
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.DEBUG if level_value <= logging.DEBUG else logging.WARNING)

    return logger


# Global logger instance
logger = setup_logger()
