"""Core utilities for the AeroFresh API."""

from aerofresh.app.core.cache import CacheConfig, CacheEntry, ResponseCache
from aerofresh.app.core.config import Settings, settings
from aerofresh.app.core.logging import get_logger, setup_logging
from aerofresh.app.core.utils import now_ms

__all__ = [
    "CacheConfig",
    "CacheEntry",
    "ResponseCache",
    "Settings",
    "settings",
    "get_logger",
    "setup_logging",
    "now_ms",
]
