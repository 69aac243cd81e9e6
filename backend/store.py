"""Entry store gateway: append-only entries plus a live snapshot feed."""
import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from buckets import bucket_for
from models import Entry
from schemas import EntryCreate

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[list[Entry]], None]


class StoreError(Exception):
    """Raised when the store cannot accept or return entries."""


class StoreUnavailableError(StoreError):
    """Raised when no store connection is configured."""


class EntryStore:
    """Persisted entry collection with subscribe/notify.

    Subscribers always receive the full collection, newest first: once when
    they subscribe and again after every successful append. Snapshots reach
    each subscriber in the order they were read, so a later one never holds
    fewer entries than an earlier one.
    """

    def __init__(self, engine: Engine | None):
        self.engine = engine
        self._lock = threading.Lock()
        # Held across "read snapshot + deliver"; reentrant so a subscriber may append
        self._notify_lock = threading.RLock()
        self._subscribers: dict[int, SnapshotCallback] = {}
        self._next_id = 0

    @property
    def available(self) -> bool:
        return self.engine is not None

    def list_entries(self) -> list[Entry]:
        """All entries ordered by creation time, newest first.

        An unconfigured store reads as empty.
        """
        if self.engine is None:
            return []
        with Session(self.engine) as session:
            stmt = select(Entry).order_by(col(Entry.created_at).desc(), col(Entry.id).desc())
            return list(session.exec(stmt).all())

    def append(self, payload: EntryCreate) -> Entry:
        """Persist one entry and notify subscribers.

        Bucket fields come from payload.date; created_at is assigned here.
        """
        if self.engine is None:
            raise StoreUnavailableError("Entry store not configured (set DATABASE_URL)")

        bucket = bucket_for(payload.date)
        entry = Entry(
            name=payload.name,
            date=payload.date,
            week=bucket.week,
            month=bucket.month,
            year=bucket.year,
            intakes=payload.intakes,
            interviews=payload.interviews,
            placements=payload.placements,
            prospects=payload.prospects,
            created_at=datetime.now(UTC),
        )

        with Session(self.engine) as session:
            try:
                session.add(entry)
                session.commit()
                session.refresh(entry)
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Error appending entry for {payload.name}: {str(e)}")
                raise StoreError(str(e)) from e

        logger.info(
            f"Appended entry {entry.id} for {entry.name} on {entry.date} "
            f"(week {entry.week}, {entry.month}/{entry.year})"
        )
        self._notify()
        return entry

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        """Register callback and send it the current snapshot.

        Returns a function that cancels the subscription; calling it more
        than once is harmless.
        """
        with self._notify_lock:
            with self._lock:
                subscriber_id = self._next_id
                self._next_id += 1
                self._subscribers[subscriber_id] = callback
            logger.info(f"Subscriber {subscriber_id} attached")

            callback(self.list_entries())

        def unsubscribe():
            with self._lock:
                removed = self._subscribers.pop(subscriber_id, None)
            if removed is not None:
                logger.info(f"Subscriber {subscriber_id} detached")

        return unsubscribe

    def _notify(self):
        with self._notify_lock:
            with self._lock:
                callbacks = list(self._subscribers.values())
            if not callbacks:
                return
            snapshot = self.list_entries()
            for callback in callbacks:
                try:
                    callback(list(snapshot))
                except Exception as e:
                    logger.error(f"Snapshot subscriber failed: {str(e)}")
