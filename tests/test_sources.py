"""Tests for data source adapters and the in-memory repository."""

from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from aerofresh.app.db.models import Aircraft, AircraftHistory, ADDirective, LivePosition, dump
from aerofresh.app.db.repository import InMemoryAircraftRepository
from aerofresh.app.sources import (
    AircraftRecord,
    DataSource,
    PositionRecord,
    SampleDataSource,
    sync_source,
)


def _position(ts: str) -> LivePosition:
    return LivePosition(lat=1.0, lon=2.0, alt=1000, speed=100, heading=0, ts=ts)


class TestModels:

    def test_tail_normalized(self):
        aircraft = Aircraft(tail=" n1ab ", make="Cessna", model="150")
        assert aircraft.tail == "N1AB"

    def test_risk_score_bounds(self):
        with pytest.raises(ValidationError):
            Aircraft(tail="N1AB", make="Cessna", model="150", riskScore=101)

    def test_dump_uses_wire_names(self):
        aircraft = Aircraft(tail="N1AB", make="Cessna", model="150", type_code="SEL", risk_score=5)
        data = dump(aircraft)
        assert data["typeCode"] == "SEL"
        assert data["riskScore"] == 5
        assert "type_code" not in data

    def test_open_ad_count(self):
        history = AircraftHistory(adDirectives=[
            ADDirective(ref="A", summary="open"),
            ADDirective(ref="B", summary="closed", status="CLOSED"),
        ])
        assert history.open_ad_count == 1


class TestInMemoryAircraftRepository:

    @pytest.fixture
    def repository(self):
        return InMemoryAircraftRepository()

    @pytest.mark.asyncio
    async def test_lookup_is_case_insensitive(self, repository):
        await repository.upsert_aircraft(Aircraft(tail="N1AB", make="Piper", model="Cub"))
        assert (await repository.get_aircraft("n1ab")).make == "Piper"

    @pytest.mark.asyncio
    async def test_history_for_known_and_unknown_tails(self, repository):
        await repository.upsert_aircraft(Aircraft(tail="N1AB", make="Piper", model="Cub"))
        assert await repository.get_history("N1AB") == AircraftHistory()
        assert await repository.get_history("N2CD") is None

    @pytest.mark.asyncio
    async def test_upsert_replaces(self, repository):
        await repository.upsert_aircraft(Aircraft(tail="N1AB", make="Piper", model="Cub"))
        await repository.upsert_aircraft(Aircraft(tail="N1AB", make="Piper", model="Super Cub"))
        assert len(repository) == 1
        assert (await repository.get_aircraft("N1AB")).model == "Super Cub"

    @pytest.mark.asyncio
    async def test_recent_positions_newest_first(self, repository):
        await repository.upsert_live("N1AB", _position("2024-01-01T00:00:00+00:00"))
        await repository.upsert_live("N2CD", _position("2024-01-02T00:00:00+00:00"))

        positions = await repository.recent_positions(10)
        assert [p["tail"] for p in positions] == ["N2CD", "N1AB"]
        assert len(await repository.recent_positions(1)) == 1
        assert await repository.recent_positions(0) == []


class TestSampleDataSource:

    @pytest.mark.asyncio
    async def test_fetch_batch(self):
        records = await SampleDataSource().fetch_batch()

        aircraft = [r for r in records if isinstance(r, AircraftRecord)]
        positions = [r for r in records if isinstance(r, PositionRecord)]
        assert len(aircraft) == 5
        assert sorted(r.tail for r in positions) == ["N123AB", "N890KL"]


class TestSyncSource:

    @pytest.mark.asyncio
    async def test_loads_sample_fleet(self):
        repository = InMemoryAircraftRepository()
        loaded = await sync_source(SampleDataSource(), repository)

        assert loaded == 7
        assert len(repository) == 5
        assert (await repository.get_history("N456CD")).accidents[0].severity == "MINOR"
        assert await repository.get_live("N890KL") is not None

    @pytest.mark.asyncio
    async def test_skips_unknown_records(self):
        source = AsyncMock(spec=DataSource)
        source.name = "mock"
        source.fetch_batch.return_value = [
            AircraftRecord(aircraft=Aircraft(tail="N1AB", make="Piper", model="Cub")),
            {"not": "a record"},
        ]
        repository = InMemoryAircraftRepository()

        assert await sync_source(source, repository) == 1
        assert len(repository) == 1

    @pytest.mark.asyncio
    async def test_source_errors_propagate(self):
        source = AsyncMock(spec=DataSource)
        source.name = "broken"
        source.fetch_batch.side_effect = ConnectionError("feed unavailable")

        with pytest.raises(ConnectionError):
            await sync_source(source, InMemoryAircraftRepository())
