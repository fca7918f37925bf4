"""In-memory entity store implementation.

All records are kept in memory and lost when the instance is closed or
discarded. Use for unit tests, prototyping, or as the baseline backend that
the conformance suites are checked against.

Storage layout: one insertion-ordered dict per namespace mapping id to a
private deep copy of the field set. Insertion order is the natural storage
order used to break sort ties and to pick the record removed by a single
(non ``all$``) `remove`.

Raw queries are not supported (`UnsupportedQueryError`).

This implementation passes every conformance suite except `raw_query`.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from vesta.adapters.id_generators import UUIDv4Generator
from vesta.domain.entity import Entity, Namespace, validate_fields
from vesta.domain.query import Query, RawQuery, parse_list_query
from vesta.interfaces.entity_store import (
    DuplicateIdError,
    EntityStore,
    StoreClosedError,
    UnsupportedQueryError,
)

from .selection import StoredRecord, apply_query

if TYPE_CHECKING:
    from vesta.domain.entity import NamespaceDescriptor
    from vesta.domain.query import Criteria, ListQuery
    from vesta.interfaces.id_generator import IdGenerator

logger = logging.getLogger(__name__)


class InMemoryEntityStore(EntityStore):
    """In-memory EntityStore for testing and non-durable use cases.

    Args:
        merge: Preserve stored fields absent from an incoming entity on save.
        id_generator: Source of identities for creates without ``id$``.
    """

    def __init__(
        self, *, merge: bool = False, id_generator: IdGenerator | None = None
    ) -> None:
        self.merge = merge
        self._id_generator = id_generator or UUIDv4Generator()
        self._collections: dict[Namespace, dict[str, dict[str, Any]]] = {}
        self._closed = False

    # --------------------------------------------------------------------- #
    # Interface implementation
    # --------------------------------------------------------------------- #

    async def load(
        self, namespace: NamespaceDescriptor, criteria: Criteria
    ) -> Entity | None:
        self._ensure_open()
        ns = Namespace.parse(namespace)
        query = replace(Query.parse(criteria), skip=0, limit=1)
        found = self._select(ns, query)
        return self._to_entity(ns, found[0]) if found else None

    async def save(self, entity: Entity) -> Entity:
        self._ensure_open()
        ns = entity.namespace
        fields = entity.data()
        validate_fields(fields)
        collection = self._collections.setdefault(ns, {})

        if entity.id is None:
            entity_id = (
                str(entity.directives.id)
                if entity.directives.id is not None
                else self._id_generator.new_id()
            )
            if entity_id in collection:
                raise DuplicateIdError(str(ns), entity_id)
            logger.debug("create %s id=%s", ns, entity_id)
        else:
            entity_id = entity.id
            if self.merge and (stored := collection.get(entity_id)) is not None:
                fields = {**stored, **fields}
            logger.debug("update %s id=%s merge=%s", ns, entity_id, self.merge)

        collection[entity_id] = fields
        return Entity(ns, copy.deepcopy(fields), id=entity_id)

    async def list(
        self, namespace: NamespaceDescriptor, query: ListQuery = None
    ) -> Sequence[Entity]:
        self._ensure_open()
        ns = Namespace.parse(namespace)
        parsed = parse_list_query(query)
        if isinstance(parsed, RawQuery):
            raise UnsupportedQueryError(
                f"{type(self).__name__} does not support raw queries"
            )
        return [self._to_entity(ns, record) for record in self._select(ns, parsed)]

    async def remove(
        self, namespace: NamespaceDescriptor, criteria: Criteria = None
    ) -> None:
        self._ensure_open()
        ns = Namespace.parse(namespace)
        query = Query.parse(criteria)
        found = self._select(ns, query)
        targets = found if query.match_all else found[:1]
        collection = self._collections.get(ns, {})
        for record in targets:
            del collection[record.id]
        logger.debug("removed %d record(s) from %s", len(targets), ns)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._collections.clear()
        logger.debug("%s closed", type(self).__name__)

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError(type(self).__name__)

    def _select(self, ns: Namespace, query: Query) -> Sequence[StoredRecord]:
        """Apply *query* to the records of *ns* in insertion order."""
        records = (
            StoredRecord(entity_id, fields)
            for entity_id, fields in self._collections.get(ns, {}).items()
        )
        return apply_query(records, query)

    @staticmethod
    def _to_entity(ns: Namespace, record: StoredRecord) -> Entity:
        return Entity(ns, copy.deepcopy(dict(record.fields)), id=record.id)
