"""Entity store interfaces for VESTA.

This module defines:
- The `EntityStore` port (framework-free ABC) every storage backend implements.
- A small, adapter-agnostic exception hierarchy for backend failures.

Layering & dependency rules:
- Lives under `vesta.interfaces`. Do NOT import from adapters, bootstrap,
  conformance or entrypoints.

Contract overview
-----------------
All operations are coroutines; every call is a suspension point.

Load:
- `load(namespace, criteria)` — criteria is an id or a selector mapping.
- Returns the single matching entity or `None`. Not-found never raises.

Save:
- `entity.id is None` → create. The id comes from `id$` verbatim when present,
  otherwise the backend assigns one. A clashing `id$` → `DuplicateIdError`.
- `entity.id` set → replace the stored field set with the entity's full field
  set (fields deleted from the entity are absent afterwards), unless the store
  was constructed with `merge=True`, in which case previously stored fields
  absent from the entity are preserved.
- Returns a deep copy decoupled from the caller's entity; the caller's entity
  is never mutated.

List:
- Selector mapping: exact matches ANDed; `{}`/None matches every record.
  `sort$` is applied before `skip$`, then `limit$`. Ties keep natural storage
  order. `skip$` past the end yields `[]`; `limit$` past the end yields the rest.
- Raw string / `[statement, *params]`: backend-native passthrough; rows are
  adapted into entities of the queried namespace. Backends without raw
  support raise `UnsupportedQueryError`.

Remove:
- Without `all$: true` only the first match (after `sort$`, else natural
  order) is removed; with it, every match. Zero matches is not an error.

Errors:
- `BackendError` — base class; storage unreachable or operation rejected.
  * `StoreUnavailableError` — operational/driver failures; callers may retry.
  * `StoreClosedError` — the store was closed.
  * `DuplicateIdError` — create with an `id$` that already exists.
  * `UnsupportedQueryError` — raw query on a backend without raw support.
  * `RawQueryError` — the backend rejected a raw query.
- Caller mistakes (malformed queries, unsupported values) are `ValueError`s
  from `vesta.domain.errors` and are not `BackendError`s.
"""

from __future__ import annotations

import abc
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vesta.domain.entity import Entity, NamespaceDescriptor
    from vesta.domain.query import Criteria, ListQuery

# --- Exceptions to standardize adapter behavior ---


class BackendError(Exception):
    """Base class for VESTA backend errors."""


class StoreUnavailableError(BackendError):
    """Operational/timeout/connection errors; callers may retry."""


class StoreClosedError(BackendError):
    """The store has been closed and cannot serve operations."""

    def __init__(self, store: str) -> None:
        super().__init__(f"{store} is closed")
        self.store = store


class DuplicateIdError(BackendError):
    """A create requested an id that is already taken in the namespace."""

    def __init__(self, namespace: str, entity_id: str) -> None:
        super().__init__(f"id {entity_id!r} already exists in {namespace}")
        self.namespace = namespace
        self.entity_id = entity_id


class UnsupportedQueryError(BackendError):
    """The backend does not support the requested kind of query."""


class RawQueryError(BackendError):
    """The backend rejected a raw query."""


# --- Port ---


class EntityStore(abc.ABC):
    """Abstract base class for entity storage backends."""

    #: Whether `list` accepts raw backend-native queries.
    supports_raw_queries: bool = False

    #: Whether `save` preserves stored fields absent from the incoming entity.
    merge: bool = False

    @abc.abstractmethod
    async def load(
        self, namespace: NamespaceDescriptor, criteria: Criteria
    ) -> Entity | None:
        """Load a single entity.

        Args:
            namespace: Namespace descriptor (see `Namespace.parse`).
            criteria: An id value or a selector mapping (may carry ``sort$``).

        Returns:
            A fresh copy of the matching entity, or None when nothing matches.

        Raises:
            BackendError: If the storage is unreachable or rejects the operation.
        """

    @abc.abstractmethod
    async def save(self, entity: Entity) -> Entity:
        """Create or replace (or merge) a record.

        Args:
            entity: The entity to persist. It is not mutated.

        Returns:
            A deep copy of the persisted entity, carrying its identity.

        Raises:
            DuplicateIdError: If ``id$`` names an existing record on create.
            BackendError: If the storage is unreachable or rejects the operation.
        """

    @abc.abstractmethod
    async def list(
        self, namespace: NamespaceDescriptor, query: ListQuery = None
    ) -> Sequence[Entity]:
        """List entities matching a selector or raw query.

        Args:
            namespace: Namespace descriptor (see `Namespace.parse`).
            query: None, a selector mapping (with ``sort$``/``skip$``/``limit$``),
                a raw query string, or ``[statement, *params]``.

        Returns:
            Fresh copies of the matching entities, in result order.

        Raises:
            UnsupportedQueryError: If a raw query is given to a backend without
                raw query support.
            BackendError: If the storage is unreachable or rejects the operation.
        """

    @abc.abstractmethod
    async def remove(
        self, namespace: NamespaceDescriptor, criteria: Criteria = None
    ) -> None:
        """Remove one (or, with ``all$: true``, every) matching record.

        Args:
            namespace: Namespace descriptor (see `Namespace.parse`).
            criteria: An id value or a selector mapping.

        Raises:
            BackendError: If the storage is unreachable or rejects the operation.
        """

    @abc.abstractmethod
    async def close(self) -> None:
        """Release backend resources. Idempotent.

        After closing, every other operation raises `StoreClosedError`.
        """

    # --- Convenience Methods ---

    async def __aenter__(self) -> EntityStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
