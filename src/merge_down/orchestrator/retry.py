"""Retry policy for creating the candidate branch."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from ..github.exceptions import GitHubError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to attempt an operation and which failures allow another try.

    The default allows exactly one retry after any repository failure. A ref
    that already exists (422) is the usual cause; timeouts and server errors
    get the same second attempt.
    """

    max_attempts: int = 2
    backoff_seconds: float = 0.0
    backoff_factor: float = 2.0
    retryable: tuple[type[Exception], ...] = (GitHubError,)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds must not be negative")

    def is_retryable(self, error: Exception) -> bool:
        """Check whether ``error`` allows another attempt."""
        return isinstance(error, self.retryable)

    def delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        if self.backoff_seconds == 0:
            return 0.0
        return float(self.backoff_seconds * self.backoff_factor ** (attempt - 1))

    async def run(
        self,
        operation: Callable[[int], Awaitable[T]],
        on_retry: Callable[[int, Exception], None] | None = None,
    ) -> T:
        """Run ``operation`` until it succeeds or the policy gives up.

        Args:
            operation: Called with the 1-based attempt number
            on_retry: Called with the failed attempt number and its error
                before the next attempt

        Returns:
            The operation's result

        Raises:
            Exception: The last error when it is not retryable or attempts
                are exhausted
        """
        attempt = 1
        while True:
            try:
                return await operation(attempt)
            except Exception as e:
                if attempt >= self.max_attempts or not self.is_retryable(e):
                    raise
                logger.debug(f"Attempt {attempt} failed, retrying: {e}")
                if on_retry is not None:
                    on_retry(attempt, e)
                delay = self.delay(attempt)
                if delay > 0:
                    await asyncio.sleep(delay)
                attempt += 1
