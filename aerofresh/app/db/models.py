"""Record models for aircraft history data.

Field names follow the JSON wire format of the API (camelCase), so records
can be dumped straight into responses.
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Aircraft(_Record):
    """Registry data for one airframe."""

    tail: str
    make: str
    model: str
    year: Optional[int] = None
    serial: Optional[str] = None
    type_code: Optional[str] = Field(default=None, alias="typeCode")
    engine: Optional[str] = None
    seats: Optional[int] = None
    risk_score: int = Field(default=0, alias="riskScore", ge=0, le=100)
    accidents: int = 0
    owners: int = 0

    @field_validator("tail")
    @classmethod
    def normalize_tail(cls, v: str) -> str:
        return v.strip().upper()


class Owner(_Record):
    name: str
    type: str
    state: Optional[str] = None
    country: Optional[str] = None


class Ownership(_Record):
    owner: Owner
    start_date: Optional[dt.date] = Field(default=None, alias="startDate")
    end_date: Optional[dt.date] = Field(default=None, alias="endDate")


class Accident(_Record):
    date: dt.date
    severity: str
    phase: Optional[str] = None
    injuries: int = 0
    fatalities: int = 0


class ADDirective(_Record):
    """FAA airworthiness directive applicable to a make/model."""

    ref: str
    summary: str
    status: str = "OPEN"
    severity: Optional[str] = None
    effective_date: Optional[dt.date] = Field(default=None, alias="effectiveDate")


class AircraftHistory(_Record):
    owners: list[Ownership] = Field(default_factory=list)
    accidents: list[Accident] = Field(default_factory=list)
    ad_directives: list[ADDirective] = Field(default_factory=list, alias="adDirectives")

    @property
    def open_ad_count(self) -> int:
        return sum(1 for ad in self.ad_directives if ad.status == "OPEN")


class LivePosition(_Record):
    """Most recent ADS-B position report for an aircraft."""

    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    alt: int
    speed: int
    heading: int = Field(ge=0, lt=360)
    ts: str
    src: str = "adsb"


def dump(record: BaseModel) -> dict:
    """JSON-ready dict using wire (alias) field names."""
    return record.model_dump(mode="json", by_alias=True)
