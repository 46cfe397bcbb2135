"""Retry utilities for persistent cache writes with exponential backoff."""
import logging
from typing import Callable, TypeVar

from tenacity import (
    RetryCallState,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_MIN_WAIT_SECONDS = 0.5
DEFAULT_MAX_WAIT_SECONDS = 5


def _validate_retry_params(
    max_attempts: int,
    min_wait_seconds: float,
    max_wait_seconds: float,
) -> None:
    """
    Validate retry parameters.

    Args:
        max_attempts: Maximum number of attempts
        min_wait_seconds: Minimum wait time between attempts
        max_wait_seconds: Maximum wait time between attempts

    Raises:
        ValueError: If any parameter is invalid
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
    if min_wait_seconds <= 0:
        raise ValueError(
            f"min_wait_seconds must be positive, got {min_wait_seconds}"
        )
    if max_wait_seconds <= 0:
        raise ValueError(
            f"max_wait_seconds must be positive, got {max_wait_seconds}"
        )
    if min_wait_seconds > max_wait_seconds:
        raise ValueError(
            f"min_wait_seconds ({min_wait_seconds}) cannot exceed "
            f"max_wait_seconds ({max_wait_seconds})"
        )


def _give_up(retry_state: RetryCallState) -> bool:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    logger.warning(
        f"Cache write gave up after {retry_state.attempt_number} attempts"
        + (f": {error}" if error else "")
    )
    return False


def create_write_retry(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    min_wait_seconds: float = DEFAULT_MIN_WAIT_SECONDS,
    max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
) -> Callable[[Callable[..., bool]], Callable[..., bool]]:
    """
    Create a retry decorator for write operations that report success as bool.

    A call is retried when it raises or returns False. After the last attempt
    the decorated function returns False instead of raising, so a cache write
    never propagates an error to its caller.

    Args:
        max_attempts: Maximum number of attempts
        min_wait_seconds: Minimum wait time between attempts
        max_wait_seconds: Maximum wait time between attempts

    Returns:
        A retry decorator configured with the specified parameters

    Raises:
        ValueError: If parameters are invalid
    """
    _validate_retry_params(max_attempts, min_wait_seconds, max_wait_seconds)

    return retry(
        retry=(
            retry_if_exception_type(Exception)
            | retry_if_result(lambda ok: ok is False)
        ),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=min_wait_seconds,
            min=min_wait_seconds,
            max=max_wait_seconds,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        retry_error_callback=_give_up,
    )
