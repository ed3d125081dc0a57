from typing import Any

from fastapi import APIRouter, Request

from aerofresh.app.core.utils import now_ms

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    """Liveness check. Requires no credential and is never rate limited."""
    return {
        "ok": True,
        "ts": now_ms(),
        "message": "AeroFresh API is running!",
        "version": request.app.state.settings.app_version,
    }
