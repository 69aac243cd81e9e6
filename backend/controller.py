"""Dashboard view state and the submission flow.

DashboardController keeps the transient state of one dashboard screen (gate,
active consultant, filter, selected date, form values, entry snapshot) and
derives the rendered dashboard from it. Nothing here is persisted.
"""
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date

from aggregation import COUNTERS, aggregate, decorate_ranking, filter_entries, grand_total, rank
from buckets import bucket_for, parse_date
from config import Settings
from models import Entry
from schemas import (
    BucketResponse,
    ChartPoint,
    DashboardResponse,
    EntryCreate,
    coerce_count,
)
from store import EntryStore, StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)


class SubmissionError(Exception):
    """Raised when a submission is refused or the store rejects it."""


@dataclass(frozen=True)
class SubmitResult:
    entry: Entry
    celebrate: bool


def build_dashboard(
    entries: Sequence,
    filter_mode: str,
    selected_date: str | date,
    roster: Sequence[str],
    active_person: str | None = None,
    loading: bool = False,
    store_available: bool = True,
) -> DashboardResponse:
    """Render the dashboard for one (entries, filter, date) combination."""
    day = parse_date(selected_date)
    bucket = bucket_for(day)
    members = aggregate(filter_entries(entries, filter_mode, bucket), roster)

    if not store_available:
        status = "Store unavailable"
    elif loading:
        status = "Loading…"
    else:
        status = "Live"

    return DashboardResponse(
        filter=filter_mode,
        date=day.isoformat(),
        bucket=BucketResponse(week=bucket.week, month=bucket.month, year=bucket.year),
        active_person=active_person or (roster[0] if roster else ""),
        totals=grand_total(members),
        members=members,
        placements_chart=[ChartPoint(name=m.name, value=m.placements) for m in members],
        intakes_chart=[ChartPoint(name=m.name, value=m.intakes) for m in members],
        ranking=decorate_ranking(rank(members)),
        loading=loading,
        store_available=store_available,
        status=status,
    )


class DashboardController:
    def __init__(
        self,
        store: EntryStore,
        settings: Settings,
        filter_mode: str = "week",
        selected_date: str | date | None = None,
        active_person: str | None = None,
        on_change: Callable[[DashboardResponse], None] | None = None,
    ):
        self.store = store
        self.settings = settings
        self.filter_mode = filter_mode
        self.selected_date = parse_date(selected_date or date.today())
        self.active_person = settings.roster[0]
        self.on_change = None

        self.unlocked = False
        self.form = {field: 0 for field in COUNTERS}
        self.entries: list = []
        self.loading = store.available
        self._unsubscribe: Callable[[], None] | None = None

        if active_person:
            self.select_person(active_person)
        # Listener attached last so construction itself renders nothing
        self.on_change = on_change

    # Subscription lifecycle

    def mount(self):
        """Start listening to the store. Only the first call subscribes."""
        if self._unsubscribe is not None:
            return
        if not self.store.available:
            self.loading = False
            self._changed()
            return
        self._unsubscribe = self.store.subscribe(self.on_snapshot)

    def unmount(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_snapshot(self, entries: list):
        # Snapshots always hold the full collection
        self.entries = list(entries)
        self.loading = False
        self._changed()

    # User actions

    def unlock(self, pin: str) -> bool:
        if pin == self.settings.pin:
            self.unlocked = True
        return self.unlocked

    def select_person(self, name: str):
        if name not in self.settings.roster:
            raise ValueError(f"{name} is not on the roster")
        self.active_person = name
        self._changed()

    def set_filter(self, mode: str):
        self.filter_mode = mode
        self._changed()

    def set_date(self, value: str | date):
        self.selected_date = parse_date(value)
        self._changed()

    def set_field(self, field: str, value):
        if field not in COUNTERS:
            raise ValueError(f"Unknown form field: {field}")
        self.form[field] = value

    def reset_form(self):
        self.form = {field: 0 for field in COUNTERS}

    def submit(self) -> SubmitResult:
        """Append the current form as an entry for the active consultant.

        The form is reset only after the store accepted the entry.
        """
        if not self.unlocked:
            raise SubmissionError("Enter access code first")

        payload = EntryCreate(
            name=self.active_person,
            date=self.selected_date.isoformat(),
            **{field: coerce_count(self.form[field]) for field in COUNTERS},
        )
        try:
            entry = self.store.append(payload)
        except StoreUnavailableError as e:
            raise SubmissionError("Entry store not configured (set DATABASE_URL)") from e
        except StoreError as e:
            logger.error(f"Submission failed for {self.active_person}: {str(e)}")
            raise SubmissionError(f"Could not save entry: {str(e)}") from e

        self.reset_form()
        return SubmitResult(entry=entry, celebrate=entry.placements > 0)

    # Derived state

    def view(self) -> DashboardResponse:
        return build_dashboard(
            self.entries,
            self.filter_mode,
            self.selected_date,
            self.settings.roster,
            active_person=self.active_person,
            loading=self.loading,
            store_available=self.store.available,
        )

    def _changed(self):
        if self.on_change is not None:
            self.on_change(self.view())
