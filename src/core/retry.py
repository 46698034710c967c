"""Retry decorator with capped exponential backoff for flaky upstream calls."""

import time
from functools import wraps
from typing import Any, Callable, Tuple, Type, TypeVar, cast

from src.core.logger import logger

F = TypeVar('F', bound=Callable[..., Any])


def backoff_delay(attempt: int, initial_delay: float, max_delay: float) -> float:
    """Delay before retry number ``attempt`` (1-based), doubling up to ``max_delay``."""
    return min(initial_delay * 2 ** (attempt - 1), max_delay)


def with_retries(
    max_retries: int = 3,
    initial_delay: float = 2,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    max_delay: float = 30.0,
) -> Callable[[F], F]:
    """
    Retry the decorated call when it raises one of ``exceptions``.

    Args:
        max_retries (int): Retries after the first attempt; 0 disables retrying.
        initial_delay (float): Seconds before the first retry.
        exceptions (tuple): Exception types that trigger a retry. Anything else
                            propagates immediately.
        max_delay (float): Upper bound for any single backoff sleep.

    Returns:
        Callable: The decorated function; the last exception is re-raised once
        retries are exhausted.
    """
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    attempt += 1
                    if attempt > max_retries:
                        logger.error(f"{func.__qualname__}: giving up after {max_retries} retries: {e}")
                        raise
                    delay = backoff_delay(attempt, initial_delay, max_delay)
                    logger.warning(
                        f"{func.__qualname__}: attempt {attempt}/{max_retries + 1} failed ({e}); "
                        f"retrying in {delay:g}s"
                    )
                    time.sleep(delay)
        return cast(F, wrapper)
    return decorator
