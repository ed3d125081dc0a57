"""Middleware package for the API."""

from aerofresh.app.middleware.api_middleware import (
    APIMiddleware,
    MiddlewareStatistics,
    RateLimitCacheMiddleware,
)
from aerofresh.app.middleware.auth import APIKeyAuthMiddleware, verify_api_key
from aerofresh.app.middleware.cors import PreflightCORSMiddleware
from aerofresh.app.middleware.client_identity import resolve_client_id
from aerofresh.app.middleware.rate_limit import (
    FixedWindowRateLimiter,
    RateLimitConfig,
    RateLimitWindow,
)
from aerofresh.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "APIMiddleware",
    "MiddlewareStatistics",
    "RateLimitCacheMiddleware",
    "APIKeyAuthMiddleware",
    "verify_api_key",
    "PreflightCORSMiddleware",
    "resolve_client_id",
    "FixedWindowRateLimiter",
    "RateLimitConfig",
    "RateLimitWindow",
    "RequestIdMiddleware",
    "get_request_id",
]
