"""Data access for aircraft records.

Endpoint handlers depend on ``AircraftRepository`` only. The in-memory
implementation backs the demo API and is populated by the data source
adapters in ``aerofresh.app.sources``.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from aerofresh.app.db.models import Aircraft, AircraftHistory, LivePosition


class AircraftRepository(ABC):
    """Abstract base class for aircraft data stores."""

    @abstractmethod
    async def get_aircraft(self, tail: str) -> Optional[Aircraft]:
        """Look up an aircraft by tail number (case-insensitive)."""

    @abstractmethod
    async def get_history(self, tail: str) -> Optional[AircraftHistory]:
        """Ownership, accident and AD history, or None for unknown tails."""

    @abstractmethod
    async def get_live(self, tail: str) -> Optional[LivePosition]:
        """Latest position report, or None if the aircraft is not tracked."""

    @abstractmethod
    async def search(self, term: str) -> List[Aircraft]:
        """Case-insensitive substring match over tail, make and model."""

    @abstractmethod
    async def recent_positions(self, limit: int) -> List[dict]:
        """Up to ``limit`` tracked aircraft with their latest position."""

    @abstractmethod
    async def upsert_aircraft(self, aircraft: Aircraft, history: Optional[AircraftHistory] = None) -> None:
        """Insert or replace an aircraft record."""

    @abstractmethod
    async def upsert_live(self, tail: str, position: LivePosition) -> None:
        """Insert or replace the latest position for a tail."""


def _normalize(tail: str) -> str:
    return tail.strip().upper()


class InMemoryAircraftRepository(AircraftRepository):
    """Dictionary-backed repository.

    Note: data is lost when the application restarts.
    """

    def __init__(self) -> None:
        self._aircraft: Dict[str, Aircraft] = {}
        self._history: Dict[str, AircraftHistory] = {}
        self._live: Dict[str, LivePosition] = {}

    def __len__(self) -> int:
        return len(self._aircraft)

    async def get_aircraft(self, tail: str) -> Optional[Aircraft]:
        return self._aircraft.get(_normalize(tail))

    async def get_history(self, tail: str) -> Optional[AircraftHistory]:
        tail = _normalize(tail)
        if tail not in self._aircraft:
            return None
        return self._history.get(tail, AircraftHistory())

    async def get_live(self, tail: str) -> Optional[LivePosition]:
        return self._live.get(_normalize(tail))

    async def search(self, term: str) -> List[Aircraft]:
        needle = term.strip().lower()
        return [
            aircraft for aircraft in self._aircraft.values()
            if needle in aircraft.tail.lower()
            or needle in aircraft.make.lower()
            or needle in aircraft.model.lower()
        ]

    async def recent_positions(self, limit: int) -> List[dict]:
        if limit <= 0:
            return []
        items = sorted(self._live.items(), key=lambda item: item[1].ts, reverse=True)
        return [{"tail": tail, "live": position} for tail, position in items[:limit]]

    async def upsert_aircraft(self, aircraft: Aircraft, history: Optional[AircraftHistory] = None) -> None:
        self._aircraft[aircraft.tail] = aircraft
        if history is not None:
            self._history[aircraft.tail] = history

    async def upsert_live(self, tail: str, position: LivePosition) -> None:
        self._live[_normalize(tail)] = position
