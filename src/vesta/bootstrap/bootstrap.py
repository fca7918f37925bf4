"""Build entity stores by backend name."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from vesta import config
from vesta.adapters.entity_store.memory import InMemoryEntityStore
from vesta.adapters.entity_store.sqlalchemy_store import SqlAlchemyEntityStore
from vesta.adapters.id_generators import make_id_generator

if TYPE_CHECKING:
    from vesta.interfaces.entity_store import EntityStore
    from vesta.interfaces.id_generator import IdGenerator

logger = logging.getLogger(__name__)

StoreFactory = Callable[[str | None, bool, "IdGenerator"], "EntityStore"]


def build_memory_store(
    url: str | None, merge: bool, id_generator: IdGenerator
) -> EntityStore:
    """Build an in-memory store; *url* must not be given."""
    if url is not None:
        raise ValueError("the memory backend does not take a database URL")
    return InMemoryEntityStore(merge=merge, id_generator=id_generator)


def build_sqlite_store(
    url: str | None, merge: bool, id_generator: IdGenerator
) -> EntityStore:
    """Build a SQL store for *url*, `VESTA_DB_URL`, or in-memory SQLite."""
    return SqlAlchemyEntityStore.from_url(
        url or config.get_db_url_or_default(), merge=merge, id_generator=id_generator
    )


BACKENDS: dict[str, StoreFactory] = {
    "memory": build_memory_store,
    "sqlite": build_sqlite_store,
}


def build_store(
    backend: str,
    url: str | None = None,
    merge: bool = False,
    id_generator: str = "uuid4",
) -> EntityStore:
    """Build the store registered as *backend*.

    Args:
        backend: One of `BACKENDS`.
        url: Database URL for SQL backends.
        merge: Whether `save` merges into stored fields instead of replacing.
        id_generator: Name of the identity source (see `ID_GENERATORS`).

    Raises:
        KeyError: If *backend* or *id_generator* is not registered.
        ValueError: If *url* does not suit the backend.
    """
    try:
        factory = BACKENDS[backend]
    except KeyError:
        raise KeyError(
            f"unknown backend {backend!r}; choose from {', '.join(BACKENDS)}"
        ) from None
    store = factory(url, merge, make_id_generator(id_generator))
    logger.debug(
        "Built %s store (merge=%s, ids=%s)", backend, merge, id_generator
    )
    return store
