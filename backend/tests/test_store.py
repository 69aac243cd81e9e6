"""Tests for the entry store gateway and its snapshot subscriptions."""
import threading

import pytest

from config import DEFAULT_ROSTER
from schemas import EntryCreate
from seed import sample_entries, seed_database
from store import EntryStore, StoreUnavailableError


def test_append_assigns_bucket_and_timestamp(store):
    entry = store.append(EntryCreate(name="Marcus", date="2023-01-01", placements="2"))

    assert entry.id is not None
    assert (entry.week, entry.month, entry.year) == (52, 1, 2023)
    assert entry.placements == 2
    assert entry.intakes == 0
    assert entry.created_at is not None


def test_list_entries_newest_first(store):
    first = store.append(EntryCreate(name="Marcus", date="2024-01-15"))
    second = store.append(EntryCreate(name="Gea", date="2024-01-10"))
    third = store.append(EntryCreate(name="Nick", date="2024-01-20"))

    assert [e.id for e in store.list_entries()] == [third.id, second.id, first.id]


def test_double_submit_stores_two_entries(store):
    payload = EntryCreate(name="Dion", date="2024-02-01", intakes=1)
    store.append(payload)
    store.append(payload)
    assert len(store.list_entries()) == 2


def test_subscribe_delivers_initial_and_full_snapshots(store):
    store.append(EntryCreate(name="Marcus", date="2024-01-15"))
    snapshots = []

    unsubscribe = store.subscribe(snapshots.append)
    assert [len(s) for s in snapshots] == [1]

    store.append(EntryCreate(name="Yde", date="2024-01-16"))
    store.append(EntryCreate(name="Sander", date="2024-01-17"))
    assert [len(s) for s in snapshots] == [1, 2, 3]
    assert snapshots[-1][0].name == "Sander"

    unsubscribe()
    store.append(EntryCreate(name="Nick", date="2024-01-18"))
    assert len(snapshots) == 3

    # Cancelling twice is harmless
    unsubscribe()


def test_failing_subscriber_does_not_block_append(store):
    received = []

    def broken(snapshot):
        if snapshot:
            raise RuntimeError("render failed")

    store.subscribe(broken)
    store.subscribe(received.append)

    entry = store.append(EntryCreate(name="Lisanna", date="2024-01-15"))
    assert entry.id is not None
    assert len(received[-1]) == 1


class SlowReadStore(EntryStore):
    """Store whose snapshot reads stall on the "slow" thread until released."""

    def __init__(self, engine):
        super().__init__(engine)
        self.read_done = threading.Event()
        self.release = threading.Event()

    def list_entries(self):
        entries = super().list_entries()
        if threading.current_thread().name == "slow":
            self.read_done.set()
            self.release.wait(timeout=2)
        return entries


def test_concurrent_appends_deliver_snapshots_in_order(memory_engine):
    store = SlowReadStore(memory_engine)
    sizes = []
    store.subscribe(lambda snapshot: sizes.append(len(snapshot)))

    slow = threading.Thread(
        name="slow", target=store.append, args=(EntryCreate(name="Marcus", date="2024-01-15"),)
    )
    slow.start()
    assert store.read_done.wait(timeout=2)

    fast = threading.Thread(
        name="fast", target=store.append, args=(EntryCreate(name="Gea", date="2024-01-16"),)
    )
    fast.start()
    # The second append waits for the first snapshot to be delivered
    fast.join(timeout=0.2)
    store.release.set()
    slow.join(timeout=2)
    fast.join(timeout=2)

    assert sizes == [0, 1, 2]

def test_unconfigured_store_reads_empty_and_refuses_writes():
    store = EntryStore(None)
    assert store.available is False
    assert store.list_entries() == []

    with pytest.raises(StoreUnavailableError):
        store.append(EntryCreate(name="Marcus", date="2024-01-15"))


def test_seed_fills_empty_store_once(store):
    added = seed_database(store, DEFAULT_ROSTER)
    assert added == len(DEFAULT_ROSTER) * 5
    assert len(store.list_entries()) == added

    assert seed_database(store, DEFAULT_ROSTER) == 0
    assert len(store.list_entries()) == added


def test_sample_entries_cover_one_week():
    entries = sample_entries(["Marcus"])
    assert len(entries) == 5
    assert len({e.date for e in entries}) == 5
