"""Identity source port for entity stores.

A store asks its `IdGenerator` for an identity whenever an entity is created
without an explicit ``id$`` directive. Identities are opaque text:

- unique for the lifetime of the generator, also across threads;
- at most 200 characters (the width of the SQL store's ``id`` column);
- never reused by the store, even after the record is removed.
"""

import abc

# pylint: disable=too-few-public-methods


class IdGenerator(abc.ABC):
    """Produces identities for newly created entities."""

    @abc.abstractmethod
    def new_id(self) -> str:
        """Return an identity no earlier call has returned."""
