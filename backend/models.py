from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class Entry(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True)  # Consultant; names outside the roster are kept but never aggregated
    date: str = Field(index=True)  # YYYY-MM-DD format
    # Bucket fields are computed from date once, at write time
    week: int = Field(index=True)
    month: int = Field(index=True)
    year: int = Field(index=True)
    intakes: int = Field(default=0)
    interviews: int = Field(default=0)
    placements: int = Field(default=0)
    prospects: int = Field(default=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
