"""Tests for the fixed-window rate limiter."""

import pytest

from aerofresh.app.core.config import Settings
from aerofresh.app.middleware.rate_limit import (
    DEFAULT_RETRY_AFTER_SECONDS,
    FixedWindowRateLimiter,
    RateLimitConfig,
    RateLimitWindow,
)


class TestRateLimitWindow:

    def test_expired_at_reset_time(self):
        window = RateLimitWindow(count=1, reset_at=1000)
        assert window.is_expired(999) is False
        assert window.is_expired(1000) is True


class TestFixedWindowRateLimiter:
    """Tests for admission and window bookkeeping."""

    @pytest.fixture
    def limiter(self):
        return FixedWindowRateLimiter(RateLimitConfig(requests_per_minute=3, window_ms=60_000))

    def test_admits_up_to_limit(self, limiter):
        """Requests up to the limit are admitted, the next one is denied."""
        results = [limiter.admit("api:a", 0) for _ in range(4)]
        assert results == [True, True, True, False]

    def test_denied_request_is_not_counted(self, limiter):
        for _ in range(5):
            limiter.admit("api:a", 0)
        assert limiter.get_window("api:a").count == 3
        assert limiter.remaining("api:a", 0) == 0

    def test_first_request_opens_window(self, limiter):
        limiter.admit("api:a", 10_000)
        window = limiter.get_window("api:a")
        assert window.count == 1
        assert window.reset_at == 70_000

    def test_window_resets_after_expiry(self, limiter):
        """A new window starts once reset_at has passed."""
        for _ in range(3):
            limiter.admit("api:a", 0)
        assert limiter.admit("api:a", 59_999) is False

        assert limiter.admit("api:a", 60_000) is True
        window = limiter.get_window("api:a")
        assert window.count == 1
        assert window.reset_at == 120_000

    def test_clients_are_independent(self, limiter):
        for _ in range(3):
            limiter.admit("api:a", 0)
        assert limiter.admit("api:a", 0) is False
        assert limiter.admit("ip:10.0.0.1", 0) is True

    def test_remaining(self, limiter):
        assert limiter.remaining("api:a", 0) == 3
        limiter.admit("api:a", 0)
        limiter.admit("api:a", 0)
        assert limiter.remaining("api:a", 0) == 1

    def test_retry_after_rounds_up(self, limiter):
        for _ in range(4):
            limiter.admit("api:a", 10_000)
        assert limiter.retry_after_seconds("api:a", 40_500) == 30

    def test_retry_after_is_at_least_one_second(self, limiter):
        limiter.admit("api:a", 0)
        assert limiter.retry_after_seconds("api:a", 59_999) == 1
        assert limiter.retry_after_seconds("api:a", 60_000) == 1

    def test_retry_after_without_window(self, limiter):
        assert limiter.retry_after_seconds("api:nobody", 0) == DEFAULT_RETRY_AFTER_SECONDS

    def test_reset_epoch_seconds(self, limiter):
        limiter.admit("api:a", 1_700_000_000_000)
        assert limiter.reset_epoch_seconds("api:a", 1_700_000_000_000) == 1_700_000_060
        assert limiter.reset_epoch_seconds("api:b", 1_700_000_000_500) == 1_700_000_061

    def test_cleanup_expired(self, limiter):
        limiter.admit("api:a", 0)       # resets at 60_000
        limiter.admit("api:b", 30_000)  # resets at 90_000

        assert limiter.cleanup_expired(60_000) == 1
        assert limiter.get_window("api:a") is None
        assert limiter.get_window("api:b") is not None

    def test_admit_prunes_stale_windows(self, limiter):
        limiter.admit("api:a", 0)
        limiter.admit("api:b", 120_000)
        assert len(limiter) == 1
        assert limiter.get_window("api:a") is None

    def test_clear(self, limiter):
        limiter.admit("api:a", 0)
        limiter.admit("api:b", 0)
        limiter.clear()
        assert len(limiter) == 0

    def test_default_config(self):
        limiter = FixedWindowRateLimiter()
        assert limiter.limit == 60
        assert limiter.config.window_ms == 60_000


class TestRateLimitConfig:

    def test_from_settings(self):
        settings = Settings(
            _env_file=None,
            rate_limit_requests_per_minute=5,
            rate_limit_window_ms=1000,
        )
        config = RateLimitConfig.from_settings(settings)
        assert config.requests_per_minute == 5
        assert config.window_ms == 1000
        assert config.requests_per_hour == 1000
        assert config.burst_limit == 10
