"""Pluggable adapters for upstream aviation data feeds."""

from aerofresh.app.sources.base import AircraftRecord, DataSource, PositionRecord, SourceRecord
from aerofresh.app.sources.loader import sync_source
from aerofresh.app.sources.sample import SampleDataSource

__all__ = [
    "AircraftRecord",
    "DataSource",
    "PositionRecord",
    "SourceRecord",
    "SampleDataSource",
    "sync_source",
]
