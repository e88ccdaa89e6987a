"""
Utilities module for Millionaire Trivia.
Contains retry decorators, error handling, and logging setup.
"""
from utils.retry import retry_with_backoff, database_retry
from utils.errors import (
    MillionaireError,
    GameError,
    GameNotFoundError,
    ProvisioningError,
    DatabaseError,
    ValidationError,
    ConfigurationError,
)
from utils.logging import setup_logging, get_logger

__all__ = [
    "retry_with_backoff",
    "database_retry",
    "MillionaireError",
    "GameError",
    "GameNotFoundError",
    "ProvisioningError",
    "DatabaseError",
    "ValidationError",
    "ConfigurationError",
    "setup_logging",
    "get_logger",
]
