"""Built-in demo fleet used until real feeds are wired in."""

from datetime import datetime, timezone
from typing import List, Optional

from aerofresh.app.db.models import (
    Accident,
    ADDirective,
    Aircraft,
    AircraftHistory,
    LivePosition,
    Owner,
    Ownership,
)
from aerofresh.app.sources.base import AircraftRecord, DataSource, PositionRecord, SourceRecord

SAMPLE_AIRCRAFT = [
    {
        "tail": "N123AB", "serial": "172-12345", "make": "Cessna", "model": "172",
        "typeCode": "SINGLE ENGINE LAND", "year": 2015, "engine": "Lycoming O-320",
        "seats": 4, "riskScore": 25, "accidents": 0, "owners": 1,
    },
    {
        "tail": "N456CD", "serial": "PA28-45678", "make": "Piper", "model": "Cherokee",
        "typeCode": "SINGLE ENGINE LAND", "year": 2010, "engine": "Lycoming O-320",
        "seats": 4, "riskScore": 30, "accidents": 1, "owners": 2,
    },
    {
        "tail": "N789EF", "serial": "BE36-78901", "make": "Beechcraft", "model": "Bonanza",
        "typeCode": "SINGLE ENGINE LAND", "year": 2008, "engine": "Continental IO-550",
        "seats": 6, "riskScore": 12, "accidents": 0, "owners": 1,
    },
    {
        "tail": "N234GH", "serial": "C182-23456", "make": "Cessna", "model": "182",
        "typeCode": "SINGLE ENGINE LAND", "year": 2012, "engine": "Lycoming O-470",
        "seats": 4, "riskScore": 18, "accidents": 0, "owners": 1,
    },
    {
        "tail": "N890KL", "serial": "SR22-89012", "make": "Cirrus", "model": "SR22",
        "typeCode": "SINGLE ENGINE LAND", "year": 2018, "engine": "Continental IO-550",
        "seats": 4, "riskScore": 8, "accidents": 0, "owners": 1,
    },
]

SAMPLE_OWNER = Owner(name="Sample Aircraft Owner", type="Individual", state="CA", country="US")

SAMPLE_ACCIDENTS = {
    "N456CD": [
        Accident(date="2016-07-14", severity="MINOR", phase="LANDING", injuries=0, fatalities=0),
    ],
}

SAMPLE_DIRECTIVES = {
    "N234GH": [
        ADDirective(
            ref="2011-10-09",
            summary="Inspect seat rails and seat roller housings",
            status="CLOSED",
            severity="MEDIUM",
            effectiveDate="2011-06-07",
        ),
    ],
}

SAMPLE_POSITIONS = {
    "N123AB": {"lat": 40.7128, "lon": -74.0060, "alt": 3500, "speed": 180, "heading": 90},
    "N890KL": {"lat": 37.6213, "lon": -122.3790, "alt": 7500, "speed": 175, "heading": 275},
}


class SampleDataSource(DataSource):
    """Static fleet data.

    The data never changes, so ``since`` is ignored and every batch is a
    full load. Position timestamps are stamped at fetch time.
    """

    name = "sample"

    async def fetch_batch(self, since: Optional[datetime] = None) -> List[SourceRecord]:
        records: List[SourceRecord] = []
        for raw in SAMPLE_AIRCRAFT:
            aircraft = Aircraft.model_validate(raw)
            history = AircraftHistory(
                owners=[Ownership(owner=SAMPLE_OWNER, startDate="2020-01-01")],
                accidents=SAMPLE_ACCIDENTS.get(aircraft.tail, []),
                adDirectives=SAMPLE_DIRECTIVES.get(aircraft.tail, []),
            )
            records.append(AircraftRecord(aircraft=aircraft, history=history))

        ts = datetime.now(timezone.utc).isoformat()
        for tail, fix in SAMPLE_POSITIONS.items():
            records.append(PositionRecord(tail=tail, position=LivePosition(ts=ts, src="adsb", **fix)))
        return records
