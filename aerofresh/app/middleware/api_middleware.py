"""Request shaping middleware: rate limiting plus response caching.

``APIMiddleware`` owns the rate limiter, the response cache and the
statistics accumulator. One instance is created per application and
injected into ``RateLimitCacheMiddleware`` and the diagnostics routes.

Per request:
    1. count the request
    2. resolve the client identity
    3. admit or reject (429) against the fixed-window quota
    4. serve a cached payload on hit
    5. otherwise delegate to the inner handler
    6. store cacheable successful responses

All limiter and cache operations are synchronous, so they cannot interleave
with other requests. The read-await-write sequence around the inner handler
is not atomic: concurrent misses for the same key each call the handler and
the last write wins.
"""

import re
from collections import Counter, deque
from typing import Any, Callable, Deque, Dict, List, Optional, Sequence

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.routing import Match

from aerofresh.app.core.cache import CacheConfig, ResponseCache
from aerofresh.app.core.config import Settings
from aerofresh.app.core.logging import get_log_context, get_logger
from aerofresh.app.core.utils import now_ms
from aerofresh.app.exceptions import RateLimitExceededError
from aerofresh.app.middleware.client_identity import resolve_client_id
from aerofresh.app.middleware.rate_limit import FixedWindowRateLimiter, RateLimitConfig

logger = get_logger(__name__)

DEFAULT_LATENCY_SAMPLES = 1000
DEFAULT_CONTENT_TYPE = "application/json"

OTHER_ENDPOINT = "other"

_PATH_PARAM = re.compile(r"\{[^}]+\}")


def endpoint_label(request: Request) -> str:
    """Label a request by the route it matches.

    Path parameters are collapsed to ``*``, so
    ``/api/aircraft/N123AB/summary`` is counted as
    ``/api/aircraft/*/summary``. Requests that match no route share the
    ``"other"`` label, which keeps the label set bounded by the routes.
    """
    router = getattr(request.scope.get("app"), "router", None)
    for route in getattr(router, "routes", ()):
        match, _ = route.matches(request.scope)
        if match != Match.NONE:
            return _PATH_PARAM.sub("*", route.path)
    return OTHER_ENDPOINT


def _escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _rate(hits: int, misses: int) -> float:
    total = hits + misses
    if total == 0:
        return 0.0
    return round(hits / total * 100, 2)


class MiddlewareStatistics:
    """Process-wide request accounting.

    Latency samples are kept in a bounded FIFO: once full, the oldest
    sample is dropped for each new one.
    """

    def __init__(self, latency_samples: int = DEFAULT_LATENCY_SAMPLES):
        self.total_requests = 0
        self.blocked_requests = 0
        self.cache_hits = 0
        self.cache_misses = 0
        self.response_times: Deque[int] = deque(maxlen=latency_samples)
        self.endpoints: Counter = Counter()

    def record_request(self, endpoint: str) -> None:
        self.total_requests += 1
        self.endpoints[endpoint] += 1

    def record_blocked(self) -> None:
        self.blocked_requests += 1

    def record_response_time(self, elapsed_ms: int) -> None:
        self.response_times.append(max(0, elapsed_ms))

    def record_cache_hit(self) -> None:
        self.cache_hits += 1

    def record_cache_miss(self) -> None:
        self.cache_misses += 1

    @property
    def average_response_time(self) -> float:
        if not self.response_times:
            return 0.0
        return sum(self.response_times) / len(self.response_times)

    @property
    def cache_hit_rate(self) -> float:
        """Cache hit rate as a percentage rounded to two decimals."""
        return _rate(self.cache_hits, self.cache_misses)

    def top_endpoints(self, limit: int = 3) -> List[Dict[str, Any]]:
        return [
            {"endpoint": endpoint, "requests": count}
            for endpoint, count in self.endpoints.most_common(limit)
        ]

    def reset_requests(self) -> None:
        self.total_requests = 0
        self.blocked_requests = 0
        self.endpoints.clear()

    def reset_cache_counters(self) -> None:
        self.cache_hits = 0
        self.cache_misses = 0


class APIMiddleware:
    """Rate limiting and response caching for the API.

    Args:
        rate_limit_config: Fixed-window quota settings
        cache_config: Response cache settings
        clock: Returns the current time in epoch milliseconds
        latency_samples: Number of response-time samples to keep
        exempt_paths: Paths that bypass rate limiting and caching
    """

    def __init__(
        self,
        rate_limit_config: Optional[RateLimitConfig] = None,
        cache_config: Optional[CacheConfig] = None,
        clock: Callable[[], int] = now_ms,
        latency_samples: int = DEFAULT_LATENCY_SAMPLES,
        exempt_paths: Sequence[str] = (),
    ):
        self.limiter = FixedWindowRateLimiter(rate_limit_config)
        self.cache = ResponseCache(cache_config)
        self.stats = MiddlewareStatistics(latency_samples)
        self.exempt_paths = frozenset(exempt_paths)
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        clock: Callable[[], int] = now_ms,
    ) -> "APIMiddleware":
        return cls(
            rate_limit_config=RateLimitConfig.from_settings(settings),
            cache_config=CacheConfig.from_settings(settings),
            clock=clock,
            latency_samples=settings.stats_latency_samples,
            exempt_paths=settings.rate_limit_exempt_paths,
        )

    def is_exempt(self, request: Request) -> bool:
        """Preflight requests and exempt paths skip rate limiting and caching."""
        return request.method == "OPTIONS" or request.url.path in self.exempt_paths

    @staticmethod
    def cache_key_for(request: Request) -> str:
        query = request.url.query
        return ResponseCache.key_for(
            request.method,
            request.url.path,
            f"?{query}" if query else "",
        )

    async def handle_request(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Run one request through admission, cache lookup and delegation.

        Errors raised by ``call_next`` propagate unchanged; the middleware
        adds no retry and never falls back to a stale cache entry.
        """
        start = self._clock()
        path = request.url.path
        self.stats.record_request(endpoint_label(request))

        client_id = resolve_client_id(request.headers)
        request.state.client_id = client_id
        log_context = get_log_context(
            request_id=getattr(request.state, "request_id", None),
            client_id=client_id,
            path=path,
            method=request.method,
        )

        if not self.limiter.admit(client_id, start):
            self.stats.record_blocked()
            error = RateLimitExceededError(
                retry_after=self.limiter.retry_after_seconds(client_id, start),
                limit=self.limiter.limit,
                remaining=self.limiter.remaining(client_id, start),
                reset=self.limiter.reset_epoch_seconds(client_id, start),
            )
            logger.warning(
                f"Rate limit exceeded for {client_id}, retry after {error.retry_after}s",
                extra={**log_context, "status_code": error.status_code},
            )
            return error.to_response()

        cache_key = self.cache_key_for(request)

        if self.cache.enabled:
            entry = self.cache.get(cache_key, start)
            if entry is not None:
                self.stats.record_cache_hit()
                elapsed = self._clock() - start
                self.stats.record_response_time(elapsed)
                response = Response(
                    content=entry.body,
                    status_code=200,
                    media_type=entry.content_type,
                )
                self._annotate_cache(response, "HIT")
                self._annotate_rate_limit(response, client_id, start)
                logger.debug(
                    f"Cache hit for {cache_key}",
                    extra={**log_context, "cache_status": "HIT", "duration_ms": elapsed},
                )
                return response

        try:
            response = await call_next(request)
        except Exception:
            self.stats.record_response_time(self._clock() - start)
            raise

        elapsed = self._clock() - start
        self.stats.record_response_time(elapsed)

        response_ok = 200 <= response.status_code < 300
        cache_status = None
        if self.cache.enabled and self.cache.is_cacheable(
            request.method, response_ok, response.headers.get("cache-control")
        ):
            body = b"".join([chunk async for chunk in response.body_iterator])
            self.cache.set(
                cache_key,
                body,
                response.headers.get("content-type", DEFAULT_CONTENT_TYPE),
                self._clock(),
            )
            self.stats.record_cache_miss()
            response = Response(
                content=body,
                status_code=response.status_code,
                headers=dict(response.headers),
                background=response.background,
            )
            cache_status = "MISS"
            self._annotate_cache(response, cache_status)

        self._annotate_rate_limit(response, client_id, start)
        logger.debug(
            f"{request.method} {path} -> {response.status_code}",
            extra={
                **log_context,
                "status_code": response.status_code,
                "duration_ms": elapsed,
                "cache_status": cache_status,
            },
        )
        return response

    def _annotate_cache(self, response: Response, status: str) -> None:
        response.headers["X-Cache"] = status
        response.headers["X-Cache-TTL"] = str(self.cache.config.ttl_ms)

    def _annotate_rate_limit(self, response: Response, client_id: str, now: int) -> None:
        response.headers["X-RateLimit-Limit"] = str(self.limiter.limit)
        response.headers["X-RateLimit-Remaining"] = str(self.limiter.remaining(client_id, now))
        response.headers["X-RateLimit-Reset"] = str(self.limiter.reset_epoch_seconds(client_id, now))

    def get_rate_limit_stats(self, top: int = 3) -> Dict[str, Any]:
        """Request, blocking, latency and cache-rate summary."""
        return {
            "total_requests": self.stats.total_requests,
            "blocked_requests": self.stats.blocked_requests,
            "average_response_time": round(self.stats.average_response_time),
            "cache_hit_rate": self.stats.cache_hit_rate,
            "top_endpoints": self.stats.top_endpoints(top),
        }

    def get_cache_stats(self) -> Dict[str, Any]:
        return {
            "size": len(self.cache),
            "hits": self.stats.cache_hits,
            "misses": self.stats.cache_misses,
            "hit_rate": self.stats.cache_hit_rate,
            "evictions": self.cache.evictions,
            "memory_usage": self.cache.memory_usage(),
        }

    def get_prometheus_metrics(self) -> str:
        """Get metrics in Prometheus text format."""
        lines = [
            "# HELP aerofresh_requests_total Total number of requests seen by the middleware",
            "# TYPE aerofresh_requests_total counter",
        ]
        for endpoint, count in sorted(self.stats.endpoints.items()):
            lines.append(f'aerofresh_requests_total{{endpoint="{_escape_label_value(endpoint)}"}} {count}')

        lines.append("\n# HELP aerofresh_requests_blocked_total Requests rejected by the rate limiter")
        lines.append("# TYPE aerofresh_requests_blocked_total counter")
        lines.append(f"aerofresh_requests_blocked_total {self.stats.blocked_requests}")

        lines.append("\n# HELP aerofresh_response_time_avg_ms Average response time over recent samples")
        lines.append("# TYPE aerofresh_response_time_avg_ms gauge")
        lines.append(f"aerofresh_response_time_avg_ms {round(self.stats.average_response_time, 2)}")

        lines.append("\n# HELP aerofresh_cache_lookups_total Cache lookups by result")
        lines.append("# TYPE aerofresh_cache_lookups_total counter")
        lines.append(f'aerofresh_cache_lookups_total{{result="hit"}} {self.stats.cache_hits}')
        lines.append(f'aerofresh_cache_lookups_total{{result="miss"}} {self.stats.cache_misses}')

        lines.append("\n# HELP aerofresh_cache_entries Entries currently cached")
        lines.append("# TYPE aerofresh_cache_entries gauge")
        lines.append(f"aerofresh_cache_entries {len(self.cache)}")

        lines.append("\n# HELP aerofresh_cache_evictions_total Capacity evictions")
        lines.append("# TYPE aerofresh_cache_evictions_total counter")
        lines.append(f"aerofresh_cache_evictions_total {self.cache.evictions}")

        lines.append("\n# HELP aerofresh_rate_limit_clients Clients with an open rate limit window")
        lines.append("# TYPE aerofresh_rate_limit_clients gauge")
        lines.append(f"aerofresh_rate_limit_clients {len(self.limiter)}")

        return "\n".join(lines) + "\n"

    def clear_cache(self) -> None:
        """Drop all cached responses and reset hit/miss counters."""
        self.cache.clear()
        self.stats.reset_cache_counters()
        logger.info("Response cache cleared")

    def clear_rate_limits(self) -> None:
        """Drop all rate limit windows and reset request counters."""
        self.limiter.clear()
        self.stats.reset_requests()
        logger.info("Rate limit windows cleared")


class RateLimitCacheMiddleware(BaseHTTPMiddleware):
    """Starlette adapter that routes requests through an ``APIMiddleware``.

    Example:
        app.add_middleware(RateLimitCacheMiddleware, api_middleware=api_middleware)
    """

    def __init__(self, app, api_middleware: APIMiddleware):
        super().__init__(app)
        self.api_middleware = api_middleware

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        if self.api_middleware.is_exempt(request):
            return await call_next(request)
        return await self.api_middleware.handle_request(request, call_next)
