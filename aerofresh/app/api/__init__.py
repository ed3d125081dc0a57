"""API endpoints package for the AeroFresh API."""

from aerofresh.app.api.aircraft import router as aircraft_router
from aerofresh.app.api.health import router as health_router
from aerofresh.app.api.stats import router as stats_router

__all__ = [
    "aircraft_router",
    "health_router",
    "stats_router",
]
