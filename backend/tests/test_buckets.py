"""Tests for ISO week / month / year bucketing."""
import math
from datetime import date, timedelta

import pytest

from buckets import Bucket, bucket_for, iso_week, parse_date


def thursday_rule_week(d: date) -> int:
    """Shift to the Thursday of the Monday-start week, count weeks from Jan 1 of that year."""
    thursday = d + timedelta(days=3 - d.weekday())
    days_since_jan1 = (thursday - date(thursday.year, 1, 1)).days
    return math.ceil((days_since_jan1 + 1) / 7)


@pytest.mark.parametrize(
    "day,expected",
    [
        ("2023-01-01", 52),  # Sunday, last ISO week of 2022
        ("2024-01-01", 1),
        ("2021-01-04", 1),
        ("2021-01-01", 53),  # Friday, still in 2020-W53
        ("2020-12-31", 53),
        ("2024-12-30", 1),  # Monday, its Thursday is 2025-01-02
        ("2026-06-15", 25),
    ],
)
def test_iso_week_boundaries(day, expected):
    assert iso_week(day) == expected


def test_bucket_keeps_calendar_year_and_month():
    """2023-01-01 is ISO week 52 but stays in calendar year 2023."""
    assert bucket_for("2023-01-01") == Bucket(week=52, month=1, year=2023)
    assert bucket_for(date(2024, 12, 30)) == Bucket(week=1, month=12, year=2024)


def test_bucket_matches_thursday_rule_over_several_years():
    day = date(2019, 12, 1)
    while day < date(2026, 2, 1):
        bucket = bucket_for(day)
        assert bucket.week == thursday_rule_week(day), day
        assert bucket.year == day.year
        assert bucket.month == day.month
        assert 1 <= bucket.week <= 53
        day += timedelta(days=1)


def test_bucket_is_not_day_of_year_over_seven():
    # Naive day_of_year / 7 would put this in week 1
    assert bucket_for("2027-01-03").week == 53


def test_parse_date_rejects_garbage():
    with pytest.raises(ValueError):
        parse_date("not-a-date")
    with pytest.raises(ValueError):
        bucket_for("2024-13-01")
