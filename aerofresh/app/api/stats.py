"""Diagnostics endpoints for the rate limit and cache middleware.

Counters live on the application's ``APIMiddleware`` instance, so requests
to these endpoints are themselves counted and rate limited.
"""

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse, PlainTextResponse

from aerofresh.app.api.dependencies import APIMiddlewareDep

router = APIRouter(tags=["stats"])

# Diagnostics must always reflect live state
NO_CACHE = {"Cache-Control": "no-cache"}


@router.get("/metrics", response_class=PlainTextResponse)
async def prometheus_metrics(api_middleware: APIMiddlewareDep) -> PlainTextResponse:
    """Prometheus-compatible metrics endpoint."""
    return PlainTextResponse(
        content=api_middleware.get_prometheus_metrics(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
        headers=NO_CACHE,
    )


@router.get("/api/stats/rate-limit")
async def rate_limit_stats(api_middleware: APIMiddlewareDep, top: int = 3) -> JSONResponse:
    """Request totals, blocked count, average latency and top endpoints."""
    return JSONResponse(api_middleware.get_rate_limit_stats(top=top), headers=NO_CACHE)


@router.get("/api/stats/cache")
async def cache_stats(api_middleware: APIMiddlewareDep) -> JSONResponse:
    """Cache size, hit/miss counts, evictions and estimated memory usage."""
    return JSONResponse(api_middleware.get_cache_stats(), headers=NO_CACHE)


@router.delete("/api/stats/cache")
async def clear_cache(api_middleware: APIMiddlewareDep) -> dict[str, Any]:
    api_middleware.clear_cache()
    return {"cleared": "cache"}


@router.delete("/api/stats/rate-limit")
async def clear_rate_limits(api_middleware: APIMiddlewareDep) -> dict[str, Any]:
    api_middleware.clear_rate_limits()
    return {"cleared": "rate-limit"}
