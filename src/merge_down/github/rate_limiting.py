"""Rate limit tracking and a circuit breaker for the GitHub client."""

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum

from .exceptions import GitHubRateLimitError

Clock = Callable[[], float]


@dataclass(frozen=True)
class RateLimitInfo:
    """Snapshot of the ``X-RateLimit-*`` headers of one response."""

    limit: int
    remaining: int
    reset: int
    used: int = 0
    resource: str = "core"

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimitInfo | None":
        """Parse response headers; None when they are absent or malformed."""
        if "X-RateLimit-Limit" not in headers:
            return None
        try:
            return cls(
                limit=int(headers["X-RateLimit-Limit"]),
                remaining=int(headers.get("X-RateLimit-Remaining", 0)),
                reset=int(headers.get("X-RateLimit-Reset", 0)),
                used=int(headers.get("X-RateLimit-Used", 0)),
                resource=headers.get("X-RateLimit-Resource", "core"),
            )
        except ValueError:
            return None

    @property
    def is_exceeded(self) -> bool:
        return self.remaining <= 0

    def seconds_until_reset(self, now: float | None = None) -> float:
        now = time.time() if now is None else now
        return max(0.0, self.reset - now)


class RateLimitManager:
    """Refuses requests once a resource is within ``buffer`` calls of its limit.

    A merge-down issues fewer than ten requests, so the default buffer keeps
    a whole run from starting on a token that cannot finish it.
    """

    def __init__(
        self, buffer: int = 10, max_wait: int = 3600, clock: Clock = time.time
    ) -> None:
        self.buffer = buffer
        self.max_wait = max_wait
        self.clock = clock
        self._limits: dict[str, RateLimitInfo] = {}

    def get_rate_limit(self, resource: str = "core") -> RateLimitInfo | None:
        """Last known limits for ``resource``."""
        return self._limits.get(resource)

    def update_rate_limit(self, headers: Mapping[str, str]) -> None:
        """Record the limits reported in response ``headers``."""
        info = RateLimitInfo.from_headers(headers)
        if info is not None:
            self._limits[info.resource] = info

    def check_rate_limit(self, resource: str = "core") -> None:
        """Raise before a request that would eat into the buffer.

        Raises:
            GitHubRateLimitError: If ``resource`` has ``buffer`` calls or
                fewer left and its window has not reset yet
        """
        info = self._limits.get(resource)
        if info is None or info.remaining > self.buffer:
            return

        wait = info.seconds_until_reset(self.clock())
        if wait <= 0:
            return

        raise GitHubRateLimitError(
            f"Rate limit for {resource} nearly exhausted "
            f"({info.remaining} of {info.limit} left, "
            f"resets in {min(wait, self.max_wait):.0f}s)",
            reset_time=info.reset,
            remaining=info.remaining,
            limit=info.limit,
        )


class BreakerState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Stops calling GitHub after repeated transient failures.

    ``failure_threshold`` consecutive failures open the breaker. Requests are
    refused for ``recovery_timeout`` seconds, then let through again
    (half-open) until a success closes the breaker or a failure reopens it.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        clock: Clock = time.time,
    ) -> None:
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.clock = clock
        self.state = BreakerState.CLOSED
        self._failures = 0
        self._opened_at: float | None = None

    @property
    def is_open(self) -> bool:
        return self.state is BreakerState.OPEN

    @property
    def is_closed(self) -> bool:
        return self.state is BreakerState.CLOSED

    def record_success(self) -> None:
        self._failures = 0
        self._opened_at = None
        self.state = BreakerState.CLOSED

    def record_failure(self) -> None:
        self._failures += 1
        if (
            self.state is BreakerState.HALF_OPEN
            or self._failures >= self.failure_threshold
        ):
            self.state = BreakerState.OPEN
            self._opened_at = self.clock()

    def get_wait_time(self) -> float:
        """Seconds until an open breaker lets requests through again."""
        if not self.is_open or self._opened_at is None:
            return 0.0
        return max(0.0, self.recovery_timeout - (self.clock() - self._opened_at))

    def can_attempt_request(self) -> bool:
        if self.is_open and self.get_wait_time() <= 0:
            self.state = BreakerState.HALF_OPEN
        return not self.is_open
