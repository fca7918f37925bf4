"""Adapters (infrastructure) for VESTA.

Provide concrete implementations of the ports in `vesta.interfaces`: the
reference entity stores (in-memory and SQLAlchemy/SQLite), ID generators, and
database plumbing (engines, metadata).

Dependency rule: may import `vesta.domain` and `vesta.interfaces`; neither may
import this package.
"""
