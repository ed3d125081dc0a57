"""Aircraft lookup endpoints.

All routes here sit behind the API key check and the rate limit/cache
middleware. Tail numbers are matched case-insensitively and echoed back
upper-cased.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Path, Query

from aerofresh.app.api.dependencies import RepositoryDep
from aerofresh.app.db.models import dump
from aerofresh.app.exceptions import ResourceNotFoundError

router = APIRouter(prefix="/api", tags=["aircraft"])

TAIL_PATTERN = r"^[A-Za-z0-9-]+$"
DEFAULT_TRACKING_LIMIT = 100

TailPath = Annotated[str, Path(pattern=TAIL_PATTERN, max_length=16)]


@router.get("/aircraft/{tail}/summary")
async def aircraft_summary(repository: RepositoryDep, tail: TailPath) -> dict[str, Any]:
    """Registration status, risk score and headline counts for one aircraft."""
    tail = tail.upper()
    aircraft = await repository.get_aircraft(tail)
    if aircraft is None:
        raise ResourceNotFoundError("Aircraft not found")

    history = await repository.get_history(tail)
    summary = {
        "tail": aircraft.tail,
        "regStatus": "Valid",
        "airworthiness": "Standard",
        "adOpenCount": history.open_ad_count if history else 0,
        "ntsbAccidents": aircraft.accidents,
        "owners": aircraft.owners,
        "riskScore": aircraft.risk_score,
        "aircraft": dump(aircraft),
    }
    return {"tail": tail, "summary": summary}


@router.get("/aircraft/{tail}/history")
async def aircraft_history(repository: RepositoryDep, tail: TailPath) -> dict[str, Any]:
    """Ownership, accident and airworthiness directive history."""
    tail = tail.upper()
    history = await repository.get_history(tail)
    if history is None:
        raise ResourceNotFoundError("Aircraft not found")
    return {"tail": tail, "history": dump(history)}


@router.get("/aircraft/{tail}/live")
async def aircraft_live(repository: RepositoryDep, tail: TailPath) -> dict[str, Any]:
    """Latest ADS-B position for one aircraft."""
    tail = tail.upper()
    position = await repository.get_live(tail)
    if position is None:
        raise ResourceNotFoundError("Live data not found")
    return {"tail": tail, "live": dump(position)}


@router.get("/search")
async def search_aircraft(
    repository: RepositoryDep,
    q: str = Query(default="", max_length=64),
) -> dict[str, Any]:
    """Case-insensitive substring search over tail, make and model."""
    results = [dump(aircraft) for aircraft in await repository.search(q)]
    return {"results": results, "total": len(results)}


@router.get("/tracking/live")
async def tracking_live(
    repository: RepositoryDep,
    limit: int = Query(default=DEFAULT_TRACKING_LIMIT, ge=0, le=1000),
) -> dict[str, Any]:
    """Most recent positions across all tracked aircraft."""
    positions = await repository.recent_positions(limit)
    return {
        "positions": [
            {"tail": item["tail"], "live": dump(item["live"])}
            for item in positions
        ]
    }
