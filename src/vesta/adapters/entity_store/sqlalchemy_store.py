"""SQLAlchemy-backed EntityStore adapter for VESTA.

This module provides an asyncio SQLAlchemy implementation of the `EntityStore`
port over SQLite (``sqlite+aiosqlite``). Each namespace lives in its own table
(see `schema`); the authoritative field set is JSON in the `data` column and
top-level scalar fields are mirrored into plain columns so that raw SQL can
filter on them.

Usage:
    store = SqlAlchemyEntityStore.from_url("sqlite+aiosqlite:///:memory:")
    saved = await store.save(Entity.make("product", name="apple", price=100))
    rows = await store.list("product", ["SELECT * FROM product WHERE price >= ?", 0])
    await store.close()

Selectors are evaluated by the shared selection helpers after fetching the
namespace in `seq` order (an `id` selector is pushed down to SQL). Raw queries
are executed verbatim with positional parameters; result rows are adapted to
entities of the queried namespace.

Exceptions:
    Maps SQLAlchemy errors to VESTA backend errors.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from sqlalchemy import Column, Table, delete, insert, inspect, select, update
from sqlalchemy.engine import make_url
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.types import NullType

from vesta.adapters.db.engine import is_sqlite, make_async_engine
from vesta.adapters.db.metadata import make_metadata
from vesta.adapters.id_generators import UUIDv4Generator
from vesta.domain.entity import Entity, Namespace, validate_fields
from vesta.domain.query import Query, RawQuery, parse_list_query
from vesta.interfaces.entity_store import (
    DuplicateIdError,
    EntityStore,
    RawQueryError,
    StoreClosedError,
    StoreUnavailableError,
)

from .codec import decode_fields
from .schema import (
    DATA_COLUMN,
    ID_COLUMN,
    SEQ_COLUMN,
    build_entity_table,
    mirror_candidates,
    mirror_row,
    table_name,
)
from .selection import StoredRecord, apply_query

if TYPE_CHECKING:
    from sqlalchemy import RowMapping
    from sqlalchemy.engine import URL
    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

    from vesta.domain.entity import NamespaceDescriptor
    from vesta.domain.query import Criteria, ListQuery
    from vesta.interfaces.id_generator import IdGenerator

logger = logging.getLogger(__name__)


def _require_sqlite(url: str | URL, store: str) -> None:
    if not is_sqlite(url):
        raise ValueError(
            f"{store} supports SQLite only, got {make_url(str(url)).get_backend_name()!r}"
        )


class SqlAlchemyEntityStore(EntityStore):
    """SQLAlchemy-backed EntityStore (SQLite only).

    - One table per namespace, created on first save.
    - Operations are serialized on an `asyncio.Lock`; each runs in its own
      transaction.
    - `close()` disposes the engine.

    Args:
        engine: Async engine for a SQLite database.
        merge: Preserve stored fields absent from an incoming entity on save.
        id_generator: Source of identities for creates without ``id$``.

    Raises:
        ValueError: If *engine* does not point at SQLite.
    """

    supports_raw_queries = True

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        merge: bool = False,
        id_generator: IdGenerator | None = None,
    ) -> None:
        _require_sqlite(engine.url, type(self).__name__)
        self.merge = merge
        self._engine = engine
        self._id_generator = id_generator or UUIDv4Generator()
        self._metadata = make_metadata()
        self._tables: dict[str, Table] = {}
        self._lock = asyncio.Lock()
        self._closed = False

    @classmethod
    def from_url(cls, url: str | URL, **kwargs: Any) -> SqlAlchemyEntityStore:
        """Build a store with its own engine (see `make_async_engine`)."""
        _require_sqlite(url, cls.__name__)
        return cls(make_async_engine(url), **kwargs)

    # --------------------------------------------------------------------- #
    # Interface implementation
    # --------------------------------------------------------------------- #

    async def load(
        self, namespace: NamespaceDescriptor, criteria: Criteria
    ) -> Entity | None:
        ns = Namespace.parse(namespace)
        query = replace(Query.parse(criteria), skip=0, limit=1)
        async with self._lock:
            self._ensure_open()
            try:
                records = await self._select(ns, query)
            except DBAPIError as e:
                raise StoreUnavailableError(str(e)) from e
        return self._to_entity(ns, records[0]) if records else None

    async def save(self, entity: Entity) -> Entity:
        ns = entity.namespace
        name = table_name(ns)
        fields = entity.data()
        validate_fields(fields)

        async with self._lock:
            self._ensure_open()
            entity_id = entity.id
            try:
                table = await self._prepare_table(name, fields)
                async with self._engine.begin() as conn:
                    if entity_id is None:
                        entity_id = (
                            str(entity.directives.id)
                            if entity.directives.id is not None
                            else self._id_generator.new_id()
                        )
                        if await self._fetch_fields(conn, table, entity_id) is not None:
                            raise DuplicateIdError(str(ns), entity_id)
                        await self._insert(conn, table, entity_id, fields)
                        logger.debug("create %s id=%s", ns, entity_id)
                    else:
                        stored = await self._fetch_fields(conn, table, entity_id)
                        if stored is None:
                            await self._insert(conn, table, entity_id, fields)
                        else:
                            if self.merge:
                                fields = {**stored, **fields}
                            await conn.execute(
                                update(table)
                                .where(table.c[ID_COLUMN] == entity_id)
                                .values(
                                    {DATA_COLUMN: fields, **mirror_row(table, fields)}
                                )
                            )
                        logger.debug(
                            "update %s id=%s merge=%s", ns, entity_id, self.merge
                        )
            except IntegrityError as e:
                raise DuplicateIdError(str(ns), str(entity_id)) from e
            except DBAPIError as e:
                raise StoreUnavailableError(str(e)) from e

        return Entity(ns, fields, id=entity_id)

    async def list(
        self, namespace: NamespaceDescriptor, query: ListQuery = None
    ) -> Sequence[Entity]:
        ns = Namespace.parse(namespace)
        parsed = parse_list_query(query)
        async with self._lock:
            self._ensure_open()
            if isinstance(parsed, RawQuery):
                rows = await self._execute_raw(parsed)
                return [self._row_to_entity(ns, row) for row in rows]
            try:
                records = await self._select(ns, parsed)
            except DBAPIError as e:
                raise StoreUnavailableError(str(e)) from e
        return [self._to_entity(ns, record) for record in records]

    async def remove(
        self, namespace: NamespaceDescriptor, criteria: Criteria = None
    ) -> None:
        ns = Namespace.parse(namespace)
        query = Query.parse(criteria)
        async with self._lock:
            self._ensure_open()
            try:
                table = await self._existing_table(table_name(ns))
                if table is None:
                    return
                async with self._engine.begin() as conn:
                    records = apply_query(await self._fetch(conn, table, query), query)
                    targets = records if query.match_all else records[:1]
                    if targets:
                        await conn.execute(
                            delete(table).where(
                                table.c[ID_COLUMN].in_([r.id for r in targets])
                            )
                        )
            except DBAPIError as e:
                raise StoreUnavailableError(str(e)) from e
        logger.debug("removed %d record(s) from %s", len(targets), ns)

    async def close(self) -> None:
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            self._tables.clear()
            await self._engine.dispose()
        logger.debug("%s closed", type(self).__name__)

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError(type(self).__name__)

    async def _existing_table(self, name: str) -> Table | None:
        """Return the cached or reflected table *name*, or None if absent."""
        if (table := self._tables.get(name)) is not None:
            return table
        async with self._engine.connect() as conn:
            if not await conn.run_sync(lambda c: inspect(c).has_table(name)):
                return None
            columns = await conn.run_sync(lambda c: inspect(c).get_columns(name))
        table = build_entity_table(
            self._metadata,
            name,
            [
                column["name"]
                for column in columns
                if column["name"] not in (SEQ_COLUMN, ID_COLUMN, DATA_COLUMN)
            ],
        )
        self._tables[name] = table
        return table

    async def _prepare_table(self, name: str, fields: Mapping[str, Any]) -> Table:
        """Create the table and any missing mirror columns for *fields*."""
        table = await self._existing_table(name)
        async with self._engine.begin() as conn:
            if table is None:
                table = build_entity_table(self._metadata, name)
                await conn.run_sync(table.create)
                self._tables[name] = table
                logger.info("created table %s", name)
            quote = conn.dialect.identifier_preparer.quote
            for column in mirror_candidates(table, fields):
                await conn.exec_driver_sql(
                    f"ALTER TABLE {quote(name)} ADD COLUMN {quote(column)}"
                )
                table.append_column(Column(column, NullType()))
                logger.debug("added mirror column %s.%s", name, column)
        return table

    async def _select(self, ns: Namespace, query: Query) -> list[StoredRecord]:
        table = await self._existing_table(table_name(ns))
        if table is None:
            return []
        async with self._engine.connect() as conn:
            records = await self._fetch(conn, table, query)
        return apply_query(records, query)

    @staticmethod
    async def _fetch(
        conn: AsyncConnection, table: Table, query: Query
    ) -> list[StoredRecord]:
        """Fetch candidate records in natural (`seq`) order."""
        stmt = select(table.c[ID_COLUMN], table.c[DATA_COLUMN]).order_by(
            table.c[SEQ_COLUMN].asc()
        )
        if (wanted := query.selector.get(ID_COLUMN)) is not None:
            stmt = stmt.where(table.c[ID_COLUMN] == str(wanted))
        rows = (await conn.execute(stmt)).all()
        return [StoredRecord(row[0], row[1]) for row in rows]

    @staticmethod
    async def _fetch_fields(
        conn: AsyncConnection, table: Table, entity_id: str
    ) -> dict[str, Any] | None:
        stmt = select(table.c[DATA_COLUMN]).where(table.c[ID_COLUMN] == entity_id)
        return (await conn.execute(stmt)).scalar_one_or_none()

    @staticmethod
    async def _insert(
        conn: AsyncConnection, table: Table, entity_id: str, fields: Mapping[str, Any]
    ) -> None:
        await conn.execute(
            insert(table).values(
                {ID_COLUMN: entity_id, DATA_COLUMN: fields, **mirror_row(table, fields)}
            )
        )

    async def _execute_raw(self, raw: RawQuery) -> Sequence[RowMapping]:
        """Run a raw statement; return its rows (empty for non-row statements).

        Raises:
            RawQueryError: If the database rejects the statement.
        """
        logger.debug("raw query %r params=%r", raw.statement, raw.params)
        try:
            async with self._engine.begin() as conn:
                if raw.params:
                    result = await conn.exec_driver_sql(raw.statement, raw.params)
                else:
                    result = await conn.exec_driver_sql(raw.statement)
                if not result.returns_rows:
                    return []
                return result.mappings().all()
        except DBAPIError as e:
            raise RawQueryError(str(e.orig) if e.orig is not None else str(e)) from e

    @staticmethod
    def _row_to_entity(ns: Namespace, row: RowMapping) -> Entity:
        """Adapt a raw result row to an entity of *ns*.

        The `id` column becomes the identity; fields come from the `data`
        column when it was selected and holds a JSON object, otherwise from the
        remaining non-NULL columns.
        """
        values = dict(row)
        raw_id = values.pop(ID_COLUMN, None)
        values.pop(SEQ_COLUMN, None)
        fields: dict[str, Any] | None = None
        if isinstance(data := values.get(DATA_COLUMN), (str, bytes)):
            try:
                fields = decode_fields(data)
            except ValueError:
                fields = None
        if fields is None:
            fields = {key: value for key, value in values.items() if value is not None}
        return Entity(ns, fields, id=None if raw_id is None else str(raw_id))

    @staticmethod
    def _to_entity(ns: Namespace, record: StoredRecord) -> Entity:
        return Entity(ns, dict(record.fields), id=record.id)
