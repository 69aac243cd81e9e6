"""Filtering, aggregation and ranking of performance entries.

Everything here is pure: results depend only on the entries passed in, the
filter mode, the reference bucket and the roster, and are rebuilt from
scratch on every call.
"""
from collections.abc import Iterable, Sequence

from buckets import Bucket
from schemas import MemberTotals, RankingRow, Totals

COUNTERS = ("intakes", "interviews", "placements", "prospects")

MEDALS = ("🥇", "🥈", "🥉")
FLAG = "🏁"


def matches_window(entry, mode: str, bucket: Bucket) -> bool:
    """Check whether an entry falls in the time window selected by mode."""
    if mode == "week":
        return entry.week == bucket.week and entry.year == bucket.year
    if mode == "month":
        return entry.month == bucket.month and entry.year == bucket.year
    if mode == "year":
        return entry.year == bucket.year
    return True


def filter_entries(entries: Iterable, mode: str, bucket: Bucket) -> list:
    return [e for e in entries if matches_window(e, mode, bucket)]


def aggregate(entries: Iterable, roster: Sequence[str]) -> list[MemberTotals]:
    """Sum counters per roster member, in roster order.

    Entries for names outside the roster are skipped.
    """
    totals = {name: MemberTotals(name=name) for name in roster}
    for entry in entries:
        member = totals.get(entry.name)
        if member is None:
            continue
        for field in COUNTERS:
            setattr(member, field, getattr(member, field) + (getattr(entry, field, 0) or 0))
    return list(totals.values())


def grand_total(totals: Iterable[MemberTotals]) -> Totals:
    result = Totals()
    for member in totals:
        for field in COUNTERS:
            setattr(result, field, getattr(result, field) + getattr(member, field))
    return result


def rank(totals: Iterable[MemberTotals]) -> list[MemberTotals]:
    """Order by placements, then intakes, then interviews (all descending).

    sorted() is stable, so full ties keep roster order.
    """
    return sorted(totals, key=lambda m: (-m.placements, -m.intakes, -m.interviews))


def decorate_ranking(ranked: Iterable[MemberTotals]) -> list[RankingRow]:
    rows = []
    for position, member in enumerate(ranked, start=1):
        badge = MEDALS[position - 1] if position <= len(MEDALS) else FLAG
        rows.append(RankingRow(position=position, badge=badge, **member.model_dump()))
    return rows
