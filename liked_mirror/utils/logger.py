"""Logger utility for the mirror sync."""

import logging
import sys
from pathlib import Path


LOGGER_NAME = "liked_songs_mirror"

# Every console line reads "[2026-01-01T00:00:00] INFO message"
CONSOLE_FORMAT = '[%(asctime)s] %(levelname)s %(message)s'
CONSOLE_DATEFMT = '%Y-%m-%dT%H:%M:%S'
FILE_FORMAT = '%(asctime)s %(levelname)s %(funcName)s:%(lineno)d %(message)s'


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATEFMT))
    return handler


def _file_handler(log_file: str) -> logging.Handler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_path, encoding='utf-8')
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=CONSOLE_DATEFMT))
    return handler


def setup_logger(name: str = LOGGER_NAME, log_file: str = None) -> logging.Logger:
    """
    Configure the sync logger for a CLI run.

    Console output goes to stdout at INFO. Passing `log_file` also writes
    DEBUG lines to that file.

    Args:
        name: Logger name
        log_file: Optional path to log file

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if log_file else logging.INFO)

    if logger.handlers:
        return logger

    logger.addHandler(_console_handler())
    if log_file:
        logger.addHandler(_file_handler(log_file))

    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Return the named logger, giving it the console handler if nothing configured it yet."""
    logger = logging.getLogger(name)

    if not logger.handlers:
        logger.setLevel(logging.INFO)
        logger.addHandler(_console_handler())

    return logger
