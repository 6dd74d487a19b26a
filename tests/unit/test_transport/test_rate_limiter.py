"""Unit tests for the token-bucket rate limiter."""

import pytest

from feedsync.transport.rate_limiter import (
    TokenBucketRateLimiter,
    get_service_rate_limiter,
    reset_service_rate_limiters,
)


@pytest.fixture(autouse=True)
def reset_limiters() -> None:
    """Start each test without shared limiters."""
    reset_service_rate_limiters()


class TestTokenBucketRateLimiter:
    """Tests for TokenBucketRateLimiter."""

    def test_rejects_non_positive_qps(self) -> None:
        """Test that max_qps must be positive."""
        with pytest.raises(ValueError, match="max_qps must be positive"):
            TokenBucketRateLimiter(max_qps=0)

    def test_bucket_starts_full(self) -> None:
        """Test that capacity defaults to max_qps and starts full."""
        limiter = TokenBucketRateLimiter(max_qps=5)

        assert limiter.bucket_capacity == 5
        assert limiter.get_available_tokens() == pytest.approx(5, abs=0.5)

    def test_try_acquire_exhausts_bucket(self) -> None:
        """Test that try_acquire fails once the bucket is empty."""
        limiter = TokenBucketRateLimiter(max_qps=0.001, bucket_capacity=2)

        assert limiter.try_acquire() is True
        assert limiter.try_acquire() is True
        assert limiter.try_acquire() is False
        assert limiter.was_rate_limited is True
        assert limiter.rate_limited_count == 1

    def test_acquire_returns_immediately_with_tokens(self) -> None:
        """Test that acquire does not wait while tokens are available."""
        limiter = TokenBucketRateLimiter(max_qps=100)

        assert limiter.acquire() is True
        assert limiter.was_rate_limited is False


class TestServiceRateLimiters:
    """Tests for the shared per-service limiters."""

    def test_same_service_shares_limiter(self) -> None:
        """Test that one limiter is shared per service."""
        first = get_service_rate_limiter("feedbin", 10)
        second = get_service_rate_limiter("feedbin", 99)

        assert first is second
        assert first.max_qps == 10

    def test_services_are_independent(self) -> None:
        """Test that different services get different limiters."""
        assert get_service_rate_limiter("feedbin", 10) is not get_service_rate_limiter(
            "feedly", 10
        )
