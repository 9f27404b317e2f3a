"""Resilience utilities: backoff schedule and caller-level retry."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from .errors import CancelledError, RemoteAPIError, TransportError

if TYPE_CHECKING:
    from .config import ClientConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Largest exponent backoff_delay raises exponential_base to
_MAX_EXPONENT = 64


class RetryExhausted(Exception):
    """All retry attempts failed."""
    def __init__(self, message: str, last_exception: Exception | None = None):
        super().__init__(message)
        self.last_exception = last_exception


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True

    @classmethod
    def from_client_config(cls, config: ClientConfig) -> RetryConfig:
        return cls(
            max_retries=config.retry_max_attempts,
            base_delay_seconds=config.retry_backoff_factor,
        )


def backoff_delay(
    attempt: int,
    base: float,
    max_delay: float,
    exponential_base: float = 2.0,
    jitter: bool = False,
) -> float:
    """
    Delay before attempt number ``attempt + 1``.

    ``base * exponential_base ** attempt``, capped at ``max_delay``. With
    jitter the delay is scaled by a random factor in [0.75, 1.25).
    """
    delay = min(base * (exponential_base ** min(attempt, _MAX_EXPONENT)), max_delay)
    if jitter:
        delay *= 0.75 + random.random() * 0.5
    return delay


def is_transient(error: BaseException) -> bool:
    """True for failures a later attempt may not hit again."""
    if isinstance(error, CancelledError):
        return False
    if isinstance(error, TransportError):
        return True
    if isinstance(error, RemoteAPIError):
        return error.transient
    return False


def retry_with_backoff(
    func: Callable[..., T],
    config: RetryConfig | None = None,
    *args: Any,
    **kwargs: Any,
) -> T:
    """
    Execute a function with exponential backoff retry.

    Only transient client errors are retried (transport failures, 5xx and
    429 answers). Cancellation and every other error propagate at once.

    Usage:
        page = retry_with_backoff(client.cash_out.get_list, RetryConfig(), params)

    Raises:
        RetryExhausted: If all retries failed
    """
    if config is None:
        config = RetryConfig()

    last_exception: Exception | None = None

    for attempt in range(config.max_retries + 1):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            last_exception = e
            if not is_transient(e):
                raise
            if attempt == config.max_retries:
                break

            delay = backoff_delay(
                attempt,
                config.base_delay_seconds,
                config.max_delay_seconds,
                config.exponential_base,
                config.jitter,
            )
            logger.warning(
                f"Retry {attempt + 1}/{config.max_retries} after {delay:.1f}s: {e}"
            )
            time.sleep(delay)

    raise RetryExhausted(
        f"All {config.max_retries} retries exhausted",
        last_exception=last_exception,
    )
