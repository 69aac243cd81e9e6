import math
from datetime import date as date_type, datetime

from pydantic import BaseModel, Field, field_validator
from sqlmodel import SQLModel


# Counters are stored in 32-bit INTEGER columns
MAX_COUNT = 2**31 - 1


def coerce_count(value) -> int:
    """Turn form input into a non-negative integer; anything unusable becomes 0.

    Values that do not fit the counter columns count as unusable too.
    """
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number) or number < 0 or number > MAX_COUNT:
        return 0
    return int(number)


class CounterFields(BaseModel):
    intakes: int = 0
    interviews: int = 0
    placements: int = 0
    prospects: int = 0

    @field_validator("intakes", "interviews", "placements", "prospects", mode="before")
    @classmethod
    def coerce_counters(cls, v):
        return coerce_count(v)


class EntryCreate(CounterFields):
    name: str
    date: str | None = Field(default=None, validate_default=True)  # YYYY-MM-DD format, defaults to today

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Consultant name is required")
        return v

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        if v is None or v == "":
            return date_type.today().isoformat()
        try:
            return datetime.strptime(v, "%Y-%m-%d").date().isoformat()
        except ValueError as e:
            raise ValueError("Invalid date format. Use YYYY-MM-DD") from e


class EntryResponse(SQLModel):
    id: int
    name: str
    date: str
    week: int
    month: int
    year: int
    intakes: int
    interviews: int
    placements: int
    prospects: int
    created_at: datetime


class SubmitResponse(BaseModel):
    ok: bool
    celebrate: bool
    entry: EntryResponse


class UnlockRequest(BaseModel):
    pin: str


class UnlockResponse(BaseModel):
    unlocked: bool


class Totals(CounterFields):
    pass


class MemberTotals(CounterFields):
    name: str


class RankingRow(MemberTotals):
    position: int
    badge: str


class ChartPoint(BaseModel):
    name: str
    value: int


class BucketResponse(BaseModel):
    week: int
    month: int
    year: int


class DashboardResponse(BaseModel):
    filter: str
    date: str
    bucket: BucketResponse
    active_person: str
    totals: Totals
    members: list[MemberTotals]
    placements_chart: list[ChartPoint]
    intakes_chart: list[ChartPoint]
    ranking: list[RankingRow]
    loading: bool
    store_available: bool
    status: str


class ConfigResponse(BaseModel):
    roster: list[str]
    filter_modes: list[str]
