from datetime import date, timedelta

from config import load_settings
from db import engine
from schemas import EntryCreate
from store import EntryStore


def sample_entries(roster, today: date | None = None) -> list[EntryCreate]:
    """A week of made-up counters for every roster member."""
    today = today or date.today()
    monday = today - timedelta(days=today.weekday())
    entries = []
    for offset in range(5):
        day = (monday + timedelta(days=offset)).isoformat()
        for i, name in enumerate(roster):
            entries.append(
                EntryCreate(
                    name=name,
                    date=day,
                    intakes=(i + offset) % 4 + 1,
                    interviews=(i * 2 + offset) % 3,
                    placements=1 if (i + offset) % 5 == 0 else 0,
                    prospects=(i + 2 * offset) % 2,
                )
            )
    return entries


def seed_database(store: EntryStore, roster) -> int:
    """Seed the store with sample data. Returns how many entries were added."""
    if store.list_entries():
        print("Database already has data, skipping seed.")
        return 0

    entries = sample_entries(roster)
    for payload in entries:
        store.append(payload)
    print(f"Seeded database with {len(entries)} sample entries.")
    return len(entries)


if __name__ == "__main__":
    from db import create_db_and_tables

    create_db_and_tables()
    seed_database(EntryStore(engine), load_settings().roster)
