"""API test fixtures — the FastAPI app over an in-memory store.

Invariants:
    - The EngineContext is injected at create_app time, so the lifespan
      never opens a database
    - The app runs on the wall clock, so seeded sessions expire relative to now
    - The collection router is mounted under /reapi (database_name default)
"""

import pytest
from httpx import ASGITransport, AsyncClient

from reapi.config import Settings
from reapi.core.session_tokens import revoked_expiry, token_expiry, utc_now
from reapi.main import create_app
from tests.fakes import (
    FakeIdentityService, InMemoryDocumentStore, seeded_registry, seeded_tasks,
    user_document,
)


@pytest.fixture
def store():
    now = utc_now()
    users = [
        user_document("u1", "alice", "tok-alice", token_expiry(now, 60)),
        user_document("u2", "bob", "tok-bob", token_expiry(now, 60)),
        user_document("u3", "carol", "tok-carol", revoked_expiry(now, 60)),
    ]
    return InMemoryDocumentStore({"Users": users, "Tasks": seeded_tasks()})


@pytest.fixture
def app(store):
    return create_app(
        seeded_registry(),
        settings=Settings(database_name="reapi"),
        store=store,
        identity=FakeIdentityService(),
    )


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
