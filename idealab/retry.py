"""
Retry helper for remote calls, plus the error classification the dashboard
uses to pick a user-facing message.
"""

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from idealab.config import DEFAULT_RETRY_ATTEMPTS, DEFAULT_RETRY_BACKOFF, DEFAULT_RETRY_DELAY
from idealab.i18n import translate

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_MESSAGES = [
    "network error",
    "timeout",
    "connection refused",
    "rate limit",
    "server error",
    "internal server error",
    "bad gateway",
    "service unavailable",
    "gateway timeout",
]


async def with_retry(operation: Callable[[], Awaitable[T]],
                     max_attempts: int = DEFAULT_RETRY_ATTEMPTS,
                     delay: float = DEFAULT_RETRY_DELAY,
                     backoff_multiplier: float = DEFAULT_RETRY_BACKOFF,
                     on_retry: Optional[Callable[[int, BaseException], None]] = None,
                     retry_on: Optional[Callable[[BaseException], bool]] = None) -> T:
    """
    Await `operation()` up to `max_attempts` times.

    The wait before attempt n+1 is delay * backoff_multiplier ** (n - 1), so a
    multiplier of 1 gives a fixed delay. `on_retry(attempt, error)` runs before
    each wait. `retry_on` restricts which errors are retried; anything else is
    raised straight away. The last error is re-raised once attempts run out.
    """

    def _before_sleep(retry_state):
        error = retry_state.outcome.exception()
        logger.warning(f"Attempt {retry_state.attempt_number}/{max_attempts} failed: {error}")
        if on_retry:
            on_retry(retry_state.attempt_number, error)

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=delay, exp_base=backoff_multiplier, min=0),
        retry=retry_if_exception(retry_on or (lambda e: True)),
        before_sleep=_before_sleep,
        reraise=True,
    ):
        with attempt:
            result = await operation()
    return result


def is_retryable_error(error: BaseException) -> bool:
    message = str(error).lower()
    return any(msg in message for msg in RETRYABLE_MESSAGES)


def get_error_message(error: BaseException, language: Optional[str] = None) -> str:
    """User-facing message for a failed remote call."""
    message = str(error)
    lowered = message.lower()

    if "rate limit" in lowered:
        return translate("errors.rateLimit", language)
    if "network" in lowered or "timeout" in lowered:
        return translate("errors.network", language)
    if "server error" in lowered or "internal" in lowered:
        return translate("errors.server", language)
    if "credits" in lowered or "créditos" in lowered:
        return translate("errors.credits", language)

    return message or translate("errors.unexpected", language)
