"""Async database engine factory and helpers.

This module centralizes creation of SQLAlchemy `AsyncEngine`s and applies
backend-specific tuning:

- **SQLite**: adds connection PRAGMAs to enforce foreign keys, enable WAL,
  and tune durability/temporary storage. In-memory databases are pinned to a
  single shared connection (`StaticPool`) so every operation sees the same
  database.
- **Other backends**: no tuning applied here.

Use this module whenever you need an engine so that all connections are
consistently configured.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

SQLITE_NAMES = {"sqlite", "sqlite+pysqlite", "sqlite+aiosqlite"}
MEMORY_DATABASES = {None, "", ":memory:"}


def is_sqlite(url: str | URL) -> bool:
    """Return True if the given SQLAlchemy URL or string corresponds to SQLite.

    Args:
        url: A database URL string or SQLAlchemy :class:`URL`.

    Returns:
        bool: True if the backend is SQLite, otherwise False.
    """
    u = make_url(str(url))
    return u.get_backend_name() in SQLITE_NAMES


def is_sqlite_memory(url: str | URL) -> bool:
    """Return True if *url* points at an in-memory SQLite database."""
    u = make_url(str(url))
    return is_sqlite(u) and u.database in MEMORY_DATABASES


def make_async_engine(url: str | URL, *, echo: bool = False) -> AsyncEngine:
    """Create a SQLAlchemy `AsyncEngine` for the given URL.

    If the backend is SQLite, applies a set of PRAGMAs on every new
    connection:
        - ``foreign_keys=ON`` (enforce referential integrity)
        - ``journal_mode=WAL`` (write-ahead logging for concurrency)
        - ``synchronous=NORMAL`` (balanced durability)
        - ``temp_store=MEMORY`` (reduce temp file I/O)

    Args:
        url: Async database URL, e.g. ``sqlite+aiosqlite:///:memory:``.
        echo: If True, log SQL statements.

    Returns:
        AsyncEngine: Configured engine.
    """
    kwargs: dict[str, Any] = {}
    if is_sqlite_memory(url):
        kwargs["poolclass"] = StaticPool

    engine = create_async_engine(url, echo=echo, **kwargs)

    if is_sqlite(url):

        @event.listens_for(engine.sync_engine, "connect")
        def _sqlite_pragmas(dbapi_conn, conn_record):  # type: ignore #pylint: disable=W0613
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON;")
            cur.execute("PRAGMA journal_mode=WAL;")
            cur.execute("PRAGMA synchronous=NORMAL;")
            cur.execute("PRAGMA temp_store=MEMORY;")
            cur.close()

    return engine
