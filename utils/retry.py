"""
Retrying storage work that failed for transient reasons.

A retried function must start from scratch on every attempt, which for
game operations means opening a fresh transaction each time.
"""
import time
import logging
from functools import wraps
from typing import Callable, Iterator, TypeVar, Any
import config

logger = logging.getLogger(__name__)

T = TypeVar('T')


def backoff_delays(
    attempts: int,
    base_delay: float,
    max_delay: float = 60.0,
    exponential_base: float = 2.0
) -> Iterator[float]:
    """Pauses between consecutive attempts: attempts - 1 values, capped."""
    delay = base_delay
    for _ in range(attempts - 1):
        yield min(delay, max_delay)
        delay *= exponential_base


def retry_with_backoff(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: tuple = (Exception,),
    sleep: Callable[[float], None] = time.sleep
):
    """
    Decorator rerunning a function while it raises one of `exceptions`.

    Args:
        max_attempts: Total number of calls, the first one included
        base_delay: Pause after the first failure, in seconds
        max_delay: Upper bound for a single pause
        exponential_base: Factor applied to the pause after each failure
        exceptions: Exception types worth another attempt
        sleep: Function used to wait between attempts

    The last failure is re-raised unchanged.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            pauses = backoff_delays(max_attempts, base_delay, max_delay, exponential_base)
            attempt = 1
            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    pause = next(pauses, None)
                    if pause is None:
                        logger.error(f"{func.__name__}: giving up after {attempt} attempts: {e}")
                        raise
                    logger.warning(
                        f"{func.__name__}: attempt {attempt}/{max_attempts} failed ({e}), "
                        f"next one in {pause:.2f}s"
                    )
                    sleep(pause)
                    attempt += 1

        return wrapper
    return decorator


def transient_database_errors() -> tuple:
    """Exceptions after which the same transaction may succeed."""
    from sqlalchemy.exc import OperationalError, DisconnectionError

    return (OperationalError, DisconnectionError, ConnectionError)


def database_retry(func: Callable[..., T]) -> Callable[..., T]:
    """Retry on transient database errors, attempts and delay from config."""
    return retry_with_backoff(
        max_attempts=config.config.DATABASE_RETRY_ATTEMPTS,
        base_delay=config.config.DATABASE_RETRY_DELAY,
        exceptions=transient_database_errors()
    )(func)
