"""Service test fixtures — a Users + Tasks registry over in-memory and SQLite stores.

Invariants:
    - Every test gets a fresh store seeded from tests/fakes.py
    - The SQLite store uses a per-test file with tables created up front

Design Decisions:
    - SQLite file under tmp_path instead of :memory: so every session of the
      manager sees the same database
"""

import pytest

from reapi.infrastructure.database import DatabaseSessionManager
from reapi.infrastructure.document_store import SqlDocumentStore
from tests.fakes import (
    InMemoryDocumentStore, make_engine, seeded_registry, seeded_tasks, seeded_users,
)


@pytest.fixture
def registry():
    return seeded_registry()


@pytest.fixture
def store():
    return InMemoryDocumentStore({"Users": seeded_users(), "Tasks": seeded_tasks()})


@pytest.fixture
def engine(registry, store):
    return make_engine(registry, store)


@pytest.fixture
async def sql_store(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'reapi.db'}")
    await manager.create_all()
    yield SqlDocumentStore(manager)
    await manager.dispose()
