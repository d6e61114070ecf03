"""Retry with exponential backoff for transient store errors."""

import time
import random
import logging
from functools import wraps
from typing import Callable, Any

logger = logging.getLogger(__name__)


class RetryableError(Exception):
    """Base class for errors that should trigger retries."""
    pass


class NetworkError(RetryableError):
    """Raised when the remote end could not be reached."""
    pass


class TemporaryServiceError(RetryableError):
    """Raised when the remote end answered but is temporarily unavailable."""
    pass


def exponential_backoff(attempt: int, base_delay: float = 1.0, max_delay: float = 60.0) -> float:
    """Delay before retry number ``attempt + 1``, with up to 10% jitter."""
    delay = min(base_delay * (2 ** attempt), max_delay)
    jitter = random.uniform(0, delay * 0.1)
    return delay + jitter


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: tuple = (RetryableError,),
):
    """Retry the decorated function when it raises one of ``exceptions``.

    The last exception is re-raised once ``max_retries`` retries are used up.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_retries:
                        logger.error(f"{func.__name__} failed after {max_retries} retries: {e}")
                        raise

                    delay = exponential_backoff(attempt, base_delay, max_delay)
                    logger.warning(
                        f"Attempt {attempt + 1} of {func.__name__} failed: {e}. "
                        f"Retrying in {delay:.2f}s..."
                    )
                    time.sleep(delay)

        return wrapper
    return decorator


def retry_api_call(max_retries: int = 3, base_delay: float = 2.0):
    """Retry decorator for calls to the record store."""
    return retry_with_backoff(
        max_retries=max_retries,
        base_delay=base_delay,
        max_delay=30.0,
        exceptions=(NetworkError, TemporaryServiceError),
    )
