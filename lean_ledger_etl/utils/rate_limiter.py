"""Rate limiter for FEC API requests."""

import time
from collections import deque
from collections.abc import Callable

from lean_ledger_etl.config import Settings
from lean_ledger_etl.utils.log import get_logger


class FECRateLimiter:
    """
    Paces requests against the FEC API key budget and tracks throttling.

    Two pieces of state live here and nowhere else:
    - the pacing clock (last request time plus a sliding one-hour window)
    - the consecutive-429 counter, which only a successful response resets

    One instance is meant to be shared by every call site of a pipeline run;
    construct a fresh one per run (or per test) instead of relying on
    module-level state.
    """

    def __init__(
        self,
        min_delay: float = 3.6,
        max_per_hour: int = 950,
        base_backoff: float = 10.0,
        max_backoff: float = 120.0,
        max_consecutive_429s: int = 8,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_delay = min_delay
        self.max_per_hour = max_per_hour
        self.base_backoff = base_backoff
        self.max_backoff = max_backoff
        self.max_consecutive_429s = max_consecutive_429s
        self._clock = clock
        self._sleep = sleep

        self.hour_requests: deque[float] = deque()
        self.last_request_at: float | None = None
        self.consecutive_429s = 0

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "FECRateLimiter":
        """Build a limiter from application settings."""
        return cls(
            min_delay=settings.api_rate_limit_delay,
            max_per_hour=settings.max_requests_per_hour,
            base_backoff=settings.rate_limit_base_backoff,
            max_backoff=settings.rate_limit_max_backoff,
            max_consecutive_429s=settings.rate_limit_max_consecutive_429s,
            **kwargs,
        )

    @property
    def exhausted(self) -> bool:
        """True once consecutive 429s have reached the hard limit."""
        return self.consecutive_429s >= self.max_consecutive_429s

    def _clean_old_requests(self, now: float) -> None:
        hour_ago = now - 3600
        while self.hour_requests and self.hour_requests[0] <= hour_ago:
            self.hour_requests.popleft()

    def wait_if_needed(self) -> None:
        """
        Block until it is safe to make another request.

        Enforces the hourly sliding window first, then the minimum
        inter-request interval.
        """
        logger = get_logger(__name__)
        now = self._clock()
        self._clean_old_requests(now)

        if len(self.hour_requests) >= self.max_per_hour:
            wait_seconds = self.hour_requests[0] + 3600 - now
            if wait_seconds > 0:
                logger.warning(
                    f"Hourly rate limit reached ({self.max_per_hour}/hour). "
                    f"Waiting {wait_seconds:.1f}s..."
                )
                self._sleep(wait_seconds)
                now = self._clock()
                self._clean_old_requests(now)

        if self.last_request_at is not None:
            time_since_last = now - self.last_request_at
            if time_since_last < self.min_delay:
                self._sleep(self.min_delay - time_since_last)

    def record_request(self) -> None:
        """Stamp an outgoing request on the pacing clock."""
        now = self._clock()
        self.last_request_at = now
        self.hour_requests.append(now)

    def record_throttle(self) -> int:
        """Count a 429 response and return the consecutive total."""
        self.consecutive_429s += 1
        return self.consecutive_429s

    def record_success(self) -> None:
        """A successful response clears accumulated throttling."""
        self.consecutive_429s = 0

    def backoff_delay(self, attempt: int) -> float:
        """Exponential backoff for a throttled attempt, capped at the ceiling."""
        return min(self.base_backoff * (2**attempt), self.max_backoff)

    def backoff(self, attempt: int) -> float:
        """Sleep for the backoff of ``attempt`` and return the delay used."""
        delay = self.backoff_delay(attempt)
        self._sleep(delay)
        return delay

    def get_stats(self) -> dict[str, int]:
        """
        Get current rate limiter statistics.

        Returns:
            Dictionary with request counts
        """
        self._clean_old_requests(self._clock())
        return {
            "requests_last_hour": len(self.hour_requests),
            "remaining_hour": self.max_per_hour - len(self.hour_requests),
            "consecutive_429s": self.consecutive_429s,
        }
