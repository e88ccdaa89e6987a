"""
Logging configuration for Millionaire Trivia.
"""
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional
import config

# Third-party loggers that flood INFO with per-request lines
NOISY_LOGGERS = ("httpx", "telegram.ext", "apscheduler")


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS
):
    """
    Setup logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file, empty string disables the file handler
        log_format: Log format string
        quiet_loggers: Logger names raised to WARNING
    """
    log_level = (log_level or config.config.LOG_LEVEL).upper()
    log_file = config.config.LOG_FILE if log_file is None else log_file
    log_format = log_format or config.config.LOG_FORMAT
    level = getattr(logging, log_level)
    formatter = logging.Formatter(log_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get logger for a specific module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
