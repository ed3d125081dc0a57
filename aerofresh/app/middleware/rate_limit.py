"""Fixed-window rate limiting.

Each client gets a counter that resets entirely when its window closes.
A client can get up to twice the nominal rate across a window boundary.
"""

import math
import threading
from dataclasses import dataclass
from typing import Dict, Optional

from aerofresh.app.core.config import Settings
from aerofresh.app.core.logging import get_logger
from aerofresh.app.core.utils import ms_to_epoch_seconds

logger = get_logger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 60


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limiting tunables.

    Only ``requests_per_minute`` and ``window_ms`` take part in admission;
    the hourly, daily and burst values are advisory.
    """
    requests_per_minute: int = 60
    requests_per_hour: int = 1000
    requests_per_day: int = 10000
    burst_limit: int = 10
    window_ms: int = 60_000

    @classmethod
    def from_settings(cls, settings: Settings) -> "RateLimitConfig":
        return cls(
            requests_per_minute=settings.rate_limit_requests_per_minute,
            requests_per_hour=settings.rate_limit_requests_per_hour,
            requests_per_day=settings.rate_limit_requests_per_day,
            burst_limit=settings.rate_limit_burst_limit,
            window_ms=settings.rate_limit_window_ms,
        )


@dataclass
class RateLimitWindow:
    """Counter state for one client in the current window."""
    count: int = 0
    reset_at: int = 0

    def is_expired(self, now: int) -> bool:
        return self.reset_at <= now


class FixedWindowRateLimiter:
    """In-memory fixed-window rate limiter keyed by client identity.

    All timestamps are epoch milliseconds supplied by the caller.
    Suitable for single-process deployments only.
    """

    def __init__(self, config: Optional[RateLimitConfig] = None):
        self.config = config or RateLimitConfig()
        self._windows: Dict[str, RateLimitWindow] = {}
        self._lock = threading.Lock()

    @property
    def limit(self) -> int:
        return self.config.requests_per_minute

    def __len__(self) -> int:
        return len(self._windows)

    def get_window(self, client_id: str) -> Optional[RateLimitWindow]:
        return self._windows.get(client_id)

    def admit(self, client_id: str, now: int) -> bool:
        """Count a request against the client's quota.

        Args:
            client_id: Identity from the client identity resolver
            now: Current time in epoch milliseconds

        Returns:
            True if the request is admitted, False if the quota for the
            current window is exhausted. A denied request is not counted.
        """
        with self._lock:
            self._cleanup_locked(now - self.config.window_ms)

            window = self._windows.get(client_id)
            if window is None or window.is_expired(now):
                window = RateLimitWindow(count=0, reset_at=now + self.config.window_ms)
                self._windows[client_id] = window

            if window.count >= self.config.requests_per_minute:
                return False

            window.count += 1
            return True

    def remaining(self, client_id: str, now: int) -> int:
        """Requests left in the client's current window."""
        window = self._windows.get(client_id)
        if window is None:
            return self.config.requests_per_minute
        return max(0, self.config.requests_per_minute - window.count)

    def retry_after_seconds(self, client_id: str, now: int) -> int:
        """Seconds until the client's window resets (at least 1)."""
        window = self._windows.get(client_id)
        if window is None:
            return DEFAULT_RETRY_AFTER_SECONDS
        return max(1, math.ceil((window.reset_at - now) / 1000))

    def reset_epoch_seconds(self, client_id: str, now: int) -> int:
        """Epoch second at which the client's window resets."""
        window = self._windows.get(client_id)
        if window is None:
            return ms_to_epoch_seconds(now + self.config.window_ms)
        return ms_to_epoch_seconds(window.reset_at)

    def cleanup_expired(self, window_start: int) -> int:
        """Remove windows that closed at or before ``window_start``.

        Returns:
            Number of windows removed.
        """
        with self._lock:
            return self._cleanup_locked(window_start)

    def _cleanup_locked(self, window_start: int) -> int:
        expired = [
            client_id for client_id, window in self._windows.items()
            if window.reset_at <= window_start
        ]
        for client_id in expired:
            del self._windows[client_id]
        return len(expired)

    def clear(self) -> None:
        """Drop all windows."""
        with self._lock:
            self._windows.clear()
