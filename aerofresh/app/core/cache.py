"""Bounded in-memory response cache.

Entries hold an opaque response payload (raw body bytes plus the content
type it was served with) so the cache is not coupled to any response schema.
Expiry is lazy: an expired entry is only dropped when it is next read.
When the cache is full, the entry closest to expiry is evicted.
"""

import threading
from dataclasses import dataclass
from typing import Optional

from aerofresh.app.core.config import Settings
from aerofresh.app.core.logging import get_logger

logger = get_logger(__name__)

CACHEABLE_METHOD = "GET"


@dataclass(frozen=True)
class CacheConfig:
    """Response cache tunables."""
    ttl_ms: int = 300_000
    max_entries: int = 1000
    enabled: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "CacheConfig":
        return cls(
            ttl_ms=settings.cache_ttl_ms,
            max_entries=settings.cache_max_entries,
            enabled=settings.cache_enabled,
        )


@dataclass
class CacheEntry:
    """A stored response payload with absolute expiry."""

    body: bytes
    content_type: str
    expires_at: int

    def is_expired(self, now: int) -> bool:
        """Check if the entry has expired at ``now`` (epoch ms)."""
        return now >= self.expires_at


class ResponseCache:
    """In-memory cache of successful GET responses.

    Mutations are guarded by a lock, so the store is safe to share between
    threads as well as between interleaved asyncio tasks. Data is lost when
    the application restarts.
    """

    def __init__(self, config: Optional[CacheConfig] = None) -> None:
        self.config = config or CacheConfig()
        self._data: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._evictions = 0

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @property
    def evictions(self) -> int:
        return self._evictions

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    @staticmethod
    def key_for(method: str, path: str, query_string: str) -> str:
        """Build the cache key for a request.

        Args:
            method: HTTP method, e.g. "GET"
            path: URL path without query string
            query_string: Raw query string including the leading "?",
                or "" when the request has none

        Returns:
            ``"<method>:<path>:<query>"``
        """
        return f"{method}:{path}:{query_string}"

    @staticmethod
    def is_cacheable(method: str, response_ok: bool, cache_control: Optional[str]) -> bool:
        """Decide whether a request/response pair may be stored."""
        if method.upper() != CACHEABLE_METHOD:
            return False
        if not response_ok:
            return False
        if cache_control and "no-cache" in cache_control.lower():
            return False
        return True

    def get(self, key: str, now: int) -> Optional[CacheEntry]:
        """Retrieve an unexpired entry.

        Args:
            key: The cache key to look up.
            now: Current time in epoch milliseconds.

        Returns:
            The entry, or None if not found or expired. Expired entries
            are removed as a side effect.
        """
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            if entry.is_expired(now):
                del self._data[key]
                return None
            return entry

    def set(self, key: str, body: bytes, content_type: str, now: int) -> None:
        """Store a response payload, evicting first when full.

        Eviction runs whenever the cache is at capacity, including when
        ``key`` is already present.

        Args:
            key: The cache key.
            body: Raw response body.
            content_type: Content type the body was served with.
            now: Current time in epoch milliseconds.
        """
        with self._lock:
            if len(self._data) >= self.config.max_entries:
                self._evict_soonest_expiring()
            self._data[key] = CacheEntry(
                body=body,
                content_type=content_type,
                expires_at=now + self.config.ttl_ms,
            )

    def _evict_soonest_expiring(self) -> None:
        # Linear scan; fine at the configured scale of ~1000 entries.
        if not self._data:
            return
        victim = min(self._data, key=lambda k: self._data[k].expires_at)
        del self._data[victim]
        self._evictions += 1
        logger.debug(f"Cache full, evicted {victim}")

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        """Clear all entries from the cache."""
        with self._lock:
            self._data.clear()
            self._evictions = 0

    def memory_usage(self) -> int:
        """Estimate memory footprint in bytes.

        Uses a UTF-16 cost model: two bytes per character of key and
        serialized value. Bodies are decoded as UTF-8 so multi-byte
        characters count once.
        """
        with self._lock:
            return sum(
                (len(key) + len(entry.body.decode("utf-8", errors="replace"))) * 2
                for key, entry in self._data.items()
            )
