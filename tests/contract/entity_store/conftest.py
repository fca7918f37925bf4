"""Fixtures for EntityStore contract tests."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from vesta.adapters.entity_store.memory import InMemoryEntityStore
from vesta.adapters.entity_store.sqlalchemy_store import SqlAlchemyEntityStore
from vesta.interfaces.entity_store import EntityStore

SQLITE_MEMORY_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(params=["memory", "memory-merge", "sqlite", "sqlite-merge"])
async def entity_store(request: pytest.FixtureRequest) -> AsyncIterator[EntityStore]:
    """Yield a fresh, empty EntityStore for the requested backend.

    Supported params:
      - `"memory"` → InMemoryEntityStore (replace on save)
      - `"memory-merge"` → InMemoryEntityStore(merge=True)
      - `"sqlite"` → SqlAlchemyEntityStore over in-memory SQLite
      - `"sqlite-merge"` → the same with merge=True

    Extend by adding new identifiers to `params` and branching below. Each
    store is closed after the test.
    """
    match request.param:
        case "memory":
            store: EntityStore = InMemoryEntityStore()
        case "memory-merge":
            store = InMemoryEntityStore(merge=True)
        case "sqlite":
            store = SqlAlchemyEntityStore.from_url(SQLITE_MEMORY_URL)
        case "sqlite-merge":
            store = SqlAlchemyEntityStore.from_url(SQLITE_MEMORY_URL, merge=True)
        case _:
            raise ValueError(f"unknown entity store type: {request.param}")
    yield store
    await store.close()
