"""Bounded retry combinator for remote calls."""

import time
from typing import Callable, TypeVar

from rfx_engine.core.errors import RateLimitedError, RetriesExhaustedError
from rfx_engine.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def is_rate_limited(exc: BaseException) -> bool:
    """Default retry predicate: only rate limiting is worth waiting out."""
    return isinstance(exc, RateLimitedError)


def call_with_retry(
    fn: Callable[[], T],
    *,
    max_attempts: int = 3,
    delay_seconds: float = 5.0,
    is_retryable: Callable[[BaseException], bool] = is_rate_limited,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "remote call",
) -> T:
    """
    Call ``fn`` until it succeeds, a non-retryable error occurs, or attempts run out.

    Args:
        fn: Zero-argument callable performing one attempt
        max_attempts: Total number of attempts, including the first
        delay_seconds: Fixed delay between attempts
        is_retryable: Predicate deciding whether an exception is retried
        sleep: Sleep function (injected in tests)
        label: Name used in log lines and the terminal error

    Returns:
        Whatever ``fn`` returns on the first successful attempt

    Raises:
        RetriesExhaustedError: If every attempt failed with a retryable error
        Exception: Any non-retryable error, unchanged, on its first occurrence
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    last_error: BaseException | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            return fn()
        except Exception as e:
            if not is_retryable(e):
                raise
            last_error = e
            if attempt < max_attempts:
                logger.warning(
                    f"{label} attempt {attempt}/{max_attempts} failed: {e}. "
                    f"Retry in {delay_seconds}s"
                )
                sleep(delay_seconds)

    logger.error(f"{label}: all {max_attempts} attempts failed: {last_error}")
    raise RetriesExhaustedError(label, max_attempts) from last_error
