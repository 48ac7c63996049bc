"""Retry utilities for rate-limited AI API calls with exponential backoff."""
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from openai import RateLimitError
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default retry configuration: 3 attempts, waits of 2s then 4s
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_WAIT_SECONDS = 2
DEFAULT_MAX_WAIT_SECONDS = 30


def is_rate_limit_error(exception: BaseException) -> bool:
    """
    Determine if an exception is a rate-limit signal (HTTP 429).

    Rate limiting is the only transient condition worth retrying. Everything
    else (bad requests, auth failures, network errors, quota exhaustion) is
    terminal. The decision is made on the exception type and HTTP status;
    message text only ever rules a 429 out, never in.
    """
    is_429 = isinstance(exception, RateLimitError) or getattr(exception, "status_code", None) == 429
    if not is_429:
        return False

    # OpenAI reports an exhausted billing quota as a 429 too; waiting won't help
    if getattr(exception, "code", None) == "insufficient_quota":
        return False
    error_str = str(exception).lower()
    if "insufficient_quota" in error_str:
        return False
    if "quota" in error_str and "exceeded" in error_str:
        return False

    return True


def create_async_retrying(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_wait_seconds: float = DEFAULT_BASE_WAIT_SECONDS,
    max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> AsyncRetrying:
    """
    Create an async retry controller that only retries rate-limit errors.

    The wait doubles from ``base_wait_seconds`` (2s, 4s, 8s, ...), capped at
    ``max_wait_seconds``.

    Args:
        max_attempts: Total number of attempts, including the first one
        base_wait_seconds: Wait before the first retry
        max_wait_seconds: Upper bound for a single wait
        sleep: Optional async sleep function (tests pass a recorder)

    Returns:
        A configured tenacity AsyncRetrying instance
    """
    retry_kwargs: dict[str, Any] = {
        "retry": retry_if_exception(is_rate_limit_error),
        "stop": stop_after_attempt(max_attempts),
        "wait": wait_exponential(multiplier=base_wait_seconds, max=max_wait_seconds),
        "before_sleep": before_sleep_log(logger, logging.WARNING),
        "reraise": True,
    }
    if sleep is not None:
        retry_kwargs["sleep"] = sleep
    return AsyncRetrying(**retry_kwargs)


async def retry_async_call(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_wait_seconds: float = DEFAULT_BASE_WAIT_SECONDS,
    max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    **kwargs: Any,
) -> T:
    """
    Execute an async function, retrying only on rate limiting.

    Args:
        func: Async function to execute
        *args: Positional arguments for the function
        max_attempts: Total number of attempts
        base_wait_seconds: Wait before the first retry
        max_wait_seconds: Upper bound for a single wait
        sleep: Optional async sleep function
        **kwargs: Keyword arguments for the function

    Returns:
        Result of the function call

    Raises:
        Exception: The last error once attempts are exhausted, or the first
            non-retryable error immediately
    """
    retrying = create_async_retrying(
        max_attempts=max_attempts,
        base_wait_seconds=base_wait_seconds,
        max_wait_seconds=max_wait_seconds,
        sleep=sleep,
    )

    async for attempt in retrying:
        with attempt:
            result = await func(*args, **kwargs)

    return result
