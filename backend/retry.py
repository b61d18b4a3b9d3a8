"""Retry utilities for remote store calls."""
import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_MIN_WAIT_SECONDS = 0.5
DEFAULT_MAX_WAIT_SECONDS = 5


def is_retryable_error(exception: BaseException) -> bool:
    """
    Determine if an exception from the remote store is worth retrying.

    Retryable errors include:
    - Rate limit errors (429)
    - Server errors (5xx)
    - Timeout and connection errors, DNS failures

    Non-retryable errors include:
    - Authentication/authorization errors (401, 403)
    - Bad requests and constraint violations (400, 404, 409, Postgres 23xxx)
    """
    if isinstance(exception, (asyncio.TimeoutError, ConnectionError, TimeoutError)):
        return True

    error_str = str(exception).lower()
    exception_type_str = type(exception).__name__.lower()

    # Postgres integrity violations are structural, never transient
    code = str(getattr(exception, "code", "") or "")
    if code.startswith("23") or code.startswith("PGRST"):
        return False

    if "429" in error_str or ("rate" in error_str and "limit" in error_str):
        return True
    if any(status in error_str for status in ["500", "502", "503", "504"]):
        return True
    if "timeout" in error_str or "timed out" in error_str or "timeout" in exception_type_str:
        return True
    if "connection" in error_str or "connect" in exception_type_str:
        return True
    if "temporary failure in name resolution" in error_str or "name or service not known" in error_str:
        return True

    # Default: don't retry unknown errors
    return False


def _validate_retry_params(max_attempts: int, min_wait_seconds: float, max_wait_seconds: float) -> None:
    """
    Validate retry parameters.

    Raises:
        ValueError: If any parameter is invalid
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
    if min_wait_seconds < 0:
        raise ValueError(f"min_wait_seconds must be non-negative, got {min_wait_seconds}")
    if max_wait_seconds < min_wait_seconds:
        raise ValueError(
            f"min_wait_seconds ({min_wait_seconds}) cannot exceed "
            f"max_wait_seconds ({max_wait_seconds})"
        )


def fixed_retrying(attempts: int, wait_seconds: float) -> AsyncRetrying:
    """
    Build a tenacity AsyncRetrying with a fixed wait between attempts.

    Used for reads where every attempt is cheap and the caller wants a
    bounded, predictable total wait.
    """
    _validate_retry_params(attempts, wait_seconds, wait_seconds)
    return AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(wait_seconds),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


async def retry_async_call(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    min_wait_seconds: float = DEFAULT_MIN_WAIT_SECONDS,
    max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
    **kwargs: Any,
) -> T:
    """
    Execute an async function, retrying transient failures with exponential backoff.

    Non-retryable errors are raised on the first attempt.

    Args:
        func: Async function to execute
        *args: Positional arguments for the function
        max_attempts: Maximum number of attempts
        min_wait_seconds: Minimum wait time between retries
        max_wait_seconds: Maximum wait time between retries
        **kwargs: Keyword arguments for the function

    Returns:
        Result of the function call

    Raises:
        The last exception when all attempts fail
        ValueError: If parameters are invalid
    """
    _validate_retry_params(max_attempts, min_wait_seconds, max_wait_seconds)

    retrying = AsyncRetrying(
        retry=retry_if_exception(is_retryable_error),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=min_wait_seconds, min=min_wait_seconds, max=max_wait_seconds),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await func(*args, **kwargs)
    raise RuntimeError("Unexpected state: no result and no exception")
