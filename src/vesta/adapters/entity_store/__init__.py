"""Reference entity store adapters.

- `memory.InMemoryEntityStore` — non-durable, no raw query support.
- `sqlalchemy_store.SqlAlchemyEntityStore` — SQLite via SQLAlchemy's asyncio
  extension, with raw SQL passthrough.

Both pass the full conformance harness (see `vesta.conformance`).
"""
