"""Calendar error taxonomy and retry with backoff (tenacity)."""

import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, TypeVar

import requests
from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 3
BASE_DELAY_MS = 1000
MAX_JITTER_MS = 500
MAX_DELAY_MS = 10000

SERVER_ERROR_STATUSES = {500, 502, 503, 504}


class ErrorCategory(str, Enum):
    AUTH_EXPIRED = "AUTH_EXPIRED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"
    API_ERROR = "API_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    INTEGRATION_NOT_CONFIGURED = "INTEGRATION_NOT_CONFIGURED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


RETRYABLE = {
    ErrorCategory.RATE_LIMITED,
    ErrorCategory.SERVER_ERROR,
    ErrorCategory.NETWORK_ERROR,
    ErrorCategory.TIMEOUT,
}


class CalendarApiError(Exception):
    """A provider answered with a non-success HTTP status."""

    def __init__(self, status: int, message: str = ""):
        self.status = status
        super().__init__(message or f"Calendar API returned HTTP {status}")


class IntegrationNotConfiguredError(Exception):
    """The user has no usable credentials for a provider."""

    pass


@dataclass
class ErrorDetails:
    category: ErrorCategory
    code: str
    message: str
    retryable: bool


def _details(category: ErrorCategory, message: str, code: str | None = None) -> ErrorDetails:
    return ErrorDetails(
        category=category,
        code=code or category.value,
        message=message,
        retryable=category in RETRYABLE,
    )


def _category_for_status(status: int) -> ErrorCategory:
    if status == 401:
        return ErrorCategory.AUTH_EXPIRED
    if status == 403:
        return ErrorCategory.PERMISSION_DENIED
    if status == 429:
        return ErrorCategory.RATE_LIMITED
    if status in SERVER_ERROR_STATUSES:
        return ErrorCategory.SERVER_ERROR
    return ErrorCategory.API_ERROR


def classify_error(exc: BaseException) -> ErrorDetails:
    """Map any provider failure onto the calendar error taxonomy."""
    message = str(exc) or exc.__class__.__name__

    if isinstance(exc, IntegrationNotConfiguredError):
        return _details(ErrorCategory.INTEGRATION_NOT_CONFIGURED, message)

    if isinstance(exc, CalendarApiError):
        return _details(_category_for_status(exc.status), message, code=str(exc.status))

    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        status = exc.response.status_code
        return _details(_category_for_status(status), message, code=str(status))

    # requests.Timeout must be checked before ConnectionError (ConnectTimeout is both)
    if isinstance(exc, (requests.Timeout, TimeoutError)) or "timeout" in message.lower():
        return _details(ErrorCategory.TIMEOUT, message)

    if isinstance(exc, (requests.ConnectionError, ConnectionError)):
        return _details(ErrorCategory.NETWORK_ERROR, message)

    return _details(ErrorCategory.UNKNOWN_ERROR, message)


def retry_delay(attempt: int, rng: Callable[[float, float], float] = random.uniform) -> float:
    """Backoff before the next attempt, in milliseconds."""
    return min(BASE_DELAY_MS * 2 ** (attempt - 1) + rng(0, MAX_JITTER_MS), MAX_DELAY_MS)


def _is_retryable(exc: BaseException) -> bool:
    return classify_error(exc).retryable


def fetch_with_retry(
    fn: Callable[[], T],
    label: str,
    max_attempts: int = MAX_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
    rng: Callable[[float, float], float] = random.uniform,
) -> T:
    """
    Call fn, retrying transient failures with exponential backoff.

    Non-retryable errors propagate immediately. After the last attempt the
    final error propagates; there is no sleep after it.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    def log_retry(state: RetryCallState) -> None:
        details = classify_error(state.outcome.exception())
        logger.debug(
            f"{label}: attempt {state.attempt_number}/{max_attempts} failed with "
            f"{details.category.value}, retrying in {state.next_action.sleep * 1000:.0f}ms"
        )

    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=lambda state: retry_delay(state.attempt_number, rng) / 1000,
        retry=retry_if_exception(_is_retryable),
        before_sleep=log_retry,
        sleep=sleep,
        reraise=True,
    )

    attempts = 0

    def attempt() -> T:
        nonlocal attempts
        attempts += 1
        return fn()

    try:
        result = retrying(attempt)
    except Exception as e:
        details = classify_error(e)
        if details.retryable:
            logger.warning(f"{label}: giving up after {attempts} attempts ({details.category.value})")
        else:
            logger.debug(f"{label}: {details.category.value} is not retryable: {details.message}")
        raise

    if attempts > 1:
        logger.info(f"{label}: succeeded on attempt {attempts}")
    return result
