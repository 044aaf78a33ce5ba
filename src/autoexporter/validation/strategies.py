"""
Retry helpers.

Bounded retry with a fixed delay, used by the event dispatcher to wrap each
unit of work it launches.
"""

import logging
import time
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


def simple_retry(
    func: Callable[[], T],
    max_attempts: int = 3,
    delay: float = 1.0,
    context: str = "operation"
) -> T:
    """
    Call ``func`` until it succeeds or ``max_attempts`` calls have failed.

    The delay between two attempts is fixed. Nothing is slept after the last
    attempt.

    Args:
        func: Function to retry
        max_attempts: Maximum number of attempts
        delay: Delay between attempts in seconds
        context: Context description for log messages

    Returns:
        Result from func if successful

    Raises:
        Exception: Last exception if all attempts fail
        ValueError: If max_attempts is lower than 1
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    last_exception = None

    for attempt in range(max_attempts):
        try:
            result = func()
            if attempt > 0:
                logger.info(f"Operation '{context}' succeeded on attempt {attempt + 1}")
            return result
        except Exception as e:
            last_exception = e
            if attempt < max_attempts - 1:
                logger.debug(f"Attempt {attempt + 1} failed for {context}: {e}")
                time.sleep(delay)
            else:
                logger.error(f"All {max_attempts} attempts failed for {context}: {e}")

    raise last_exception
