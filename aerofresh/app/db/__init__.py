"""Data access layer for aircraft history records."""

from aerofresh.app.db.models import (
    ADDirective,
    Accident,
    Aircraft,
    AircraftHistory,
    LivePosition,
    Owner,
    Ownership,
    dump,
)
from aerofresh.app.db.repository import AircraftRepository, InMemoryAircraftRepository

__all__ = [
    "ADDirective",
    "Accident",
    "Aircraft",
    "AircraftHistory",
    "LivePosition",
    "Owner",
    "Ownership",
    "dump",
    "AircraftRepository",
    "InMemoryAircraftRepository",
]
