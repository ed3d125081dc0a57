"""Data source adapter interface.

Every upstream feed (FAA registry, NTSB accidents, AD directives, ADS-B
positions, ...) is wrapped in a ``DataSource`` that returns normalized
records. Loading them into a repository is handled by ``sync_source``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

from aerofresh.app.db.models import Aircraft, AircraftHistory, LivePosition


@dataclass
class AircraftRecord:
    """Registry entry plus whatever history the source knows about."""
    aircraft: Aircraft
    history: Optional[AircraftHistory] = None


@dataclass
class PositionRecord:
    """A live position report for one tail."""
    tail: str
    position: LivePosition


SourceRecord = Union[AircraftRecord, PositionRecord]


class DataSource(ABC):
    """Abstract base class for upstream data feeds."""

    #: Human-readable source name used in logs
    name: str = "source"

    @abstractmethod
    async def fetch_batch(self, since: Optional[datetime] = None) -> List[SourceRecord]:
        """Fetch records changed since ``since``.

        Args:
            since: Only return records updated after this instant.
                None requests a full load.

        Returns:
            Normalized records ready to be loaded into a repository.
        """
