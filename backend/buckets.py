"""Calendar bucketing for entries (ISO week, month, year)."""
from datetime import date, datetime
from typing import NamedTuple


class Bucket(NamedTuple):
    week: int
    month: int
    year: int


def parse_date(value: str | date) -> date:
    """Accept a date or a YYYY-MM-DD string. Raises ValueError otherwise."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, "%Y-%m-%d").date()


def iso_week(value: str | date) -> int:
    """ISO-8601 week number: the week holding the Thursday of a Monday-start week.

    Jan 1-3 can land in week 52/53 of the previous year and Dec 29-31 in
    week 1 of the next one.
    """
    return parse_date(value).isocalendar()[1]


def bucket_for(value: str | date) -> Bucket:
    """Bucket a date into (week, month, year).

    year is the calendar year, not the ISO year, so 2023-01-01 becomes
    week 52 of 2023.
    """
    d = parse_date(value)
    return Bucket(week=iso_week(d), month=d.month, year=d.year)
