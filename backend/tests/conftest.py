"""Shared fixtures: an in-memory entry store and an API client wired to it."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from app import app, get_settings, get_store
from config import Settings
from db import create_db_and_tables
from store import EntryStore, StoreError


class FailingStore(EntryStore):
    """A configured store whose writes always fail."""

    def append(self, payload):
        raise StoreError("database is locked")


@pytest.fixture(scope="function")
def memory_engine():
    """Create a fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def store(memory_engine):
    return EntryStore(memory_engine)


@pytest.fixture(scope="function")
def failing_store(memory_engine):
    return FailingStore(memory_engine)


@pytest.fixture(scope="function")
def settings():
    return Settings()


@pytest.fixture(scope="function")
def make_client(settings):
    """Build a test client whose store dependency is overridden."""
    clients = []

    def _make(target_store):
        app.dependency_overrides[get_store] = lambda: target_store
        app.dependency_overrides[get_settings] = lambda: settings
        test_client = TestClient(app)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        test_client.__exit__(None, None, None)
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(make_client, store):
    """Create a test client with dependency override."""
    return make_client(store)
