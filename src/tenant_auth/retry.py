"""Retry policy for auth service exchanges.

The token clients never retry on their own. Callers that want retries wrap
a single-attempt operation with :meth:`RetryPolicy.call`. Only
network-level failures are retried; an answer from the auth service is
final.
"""

import time
from collections.abc import Callable
from typing import TypeVar

import structlog

from .authapi.errors import ResponseReadError, TransportError
from .config import AuthConfig

logger = structlog.get_logger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS = (TransportError, ResponseReadError)


class RetryPolicy:
    """Fixed-delay retry of network-level failures."""

    def __init__(self, attempts: int = 1, sleep: float = 1.0):
        """Initialize the policy.

        Args:
            attempts: Total number of attempts, including the first.
            sleep: Seconds to wait between attempts.

        Raises:
            ValueError: If attempts is less than one or sleep is negative.
        """
        if attempts < 1:
            msg = "attempts must be at least 1"
            raise ValueError(msg)
        if sleep < 0:
            msg = "sleep cannot be negative"
            raise ValueError(msg)
        self.attempts = attempts
        self.sleep = sleep

    @classmethod
    def from_config(cls, config: AuthConfig) -> "RetryPolicy":
        """Build a policy from the configured attempts and retry sleep."""
        return cls(attempts=config.retry_attempts, sleep=config.connection_retry_sleep)

    def call(self, func: Callable[[], T]) -> T:
        """Call ``func``, retrying on transport and body read errors.

        Returns:
            The value returned by the first successful attempt.

        Raises:
            The last retryable error once attempts are exhausted, or any
            non-retryable error immediately.
        """
        attempt = 1
        while True:
            try:
                return func()
            except RETRYABLE_ERRORS as exc:
                if attempt >= self.attempts:
                    raise
                logger.warning(
                    "Auth request failed, retrying",
                    attempt=attempt,
                    attempts=self.attempts,
                    sleep_seconds=self.sleep,
                    error=str(exc),
                )
            time.sleep(self.sleep)
            attempt += 1
