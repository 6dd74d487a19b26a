"""Request pacing for the hosted sync services.

Feedbin documents a request budget per account; every caller of one
service shares a single bucket so concurrent sync operations cannot
exceed it together.
"""

import threading
import time
from typing import Protocol

import structlog


logger = structlog.get_logger()


class RateLimiterProtocol(Protocol):
    """What an API caller needs from a pacer."""

    def acquire(self, tokens: int = 1) -> bool: ...


class TokenBucketRateLimiter:
    """Token bucket refilled continuously at ``max_qps`` tokens per second.

    The bucket starts full and holds at most ``bucket_capacity`` tokens
    (``max_qps`` unless given). Safe to share between worker threads.
    """

    def __init__(
        self,
        max_qps: float,
        bucket_capacity: float | None = None,
        service: str = "default",
    ) -> None:
        """Initialize the bucket.

        Args:
            max_qps: Sustained requests per second.
            bucket_capacity: Burst size; defaults to max_qps.
            service: Service name for logging.

        Raises:
            ValueError: If max_qps is not positive.
        """
        if max_qps <= 0:
            msg = f"max_qps must be positive, got {max_qps}"
            raise ValueError(msg)
        self.max_qps = max_qps
        self.bucket_capacity = bucket_capacity or max_qps
        self.service = service
        self._tokens = self.bucket_capacity
        self._refilled_at = time.monotonic()
        self._waits = 0
        self._lock = threading.Lock()

    def acquire(self, tokens: int = 1) -> bool:
        """Take tokens, sleeping until the bucket has enough.

        Returns:
            Always True, once the tokens were taken.
        """
        while (delay := self._take(tokens)) > 0:
            logger.debug(
                "request_paced",
                component="transport",
                service=self.service,
                delay_ms=round(delay * 1000, 1),
            )
            time.sleep(delay)
        return True

    def try_acquire(self, tokens: int = 1) -> bool:
        """Take tokens only if they are available right now."""
        return self._take(tokens) == 0

    @property
    def was_rate_limited(self) -> bool:
        """Whether any request found the bucket empty."""
        return self.rate_limited_count > 0

    @property
    def rate_limited_count(self) -> int:
        """How many times a request found the bucket empty."""
        with self._lock:
            return self._waits

    def get_available_tokens(self) -> float:
        """Tokens in the bucket right now."""
        with self._lock:
            self._refill(time.monotonic())
            return self._tokens

    def _take(self, tokens: int) -> float:
        """Take tokens, or return the seconds until enough are available."""
        with self._lock:
            self._refill(time.monotonic())
            if self._tokens >= tokens:
                self._tokens -= tokens
                return 0.0
            self._waits += 1
            return (tokens - self._tokens) / self.max_qps

    def _refill(self, now: float) -> None:
        elapsed = now - self._refilled_at
        self._tokens = min(self.bucket_capacity, self._tokens + elapsed * self.max_qps)
        self._refilled_at = now


_service_limiters: dict[str, TokenBucketRateLimiter] = {}
_service_limiters_lock = threading.Lock()


def get_service_rate_limiter(service: str, max_qps: float) -> TokenBucketRateLimiter:
    """Return the limiter shared by every caller of a service.

    The first call for a service fixes its rate; later max_qps values are
    ignored.

    Args:
        service: Service name, e.g. ``feedbin``.
        max_qps: Requests per second for a newly created limiter.
    """
    with _service_limiters_lock:
        limiter = _service_limiters.get(service)
        if limiter is None:
            limiter = TokenBucketRateLimiter(max_qps=max_qps, service=service)
            _service_limiters[service] = limiter
        return limiter


def reset_service_rate_limiters() -> None:
    """Forget all shared limiters (for tests)."""
    with _service_limiters_lock:
        _service_limiters.clear()
