"""SQLAlchemy `MetaData` factory with a naming convention.

Entity tables are created on demand, one per namespace, so each store owns
its own `MetaData`. The naming convention gives their constraints
deterministic names regardless of which store created them.

Naming convention:
    - Indexes:       ix_<table>_<col...>
    - Unique:        uq_<table>_<col...>
    - Check:         ck_<table>_<constraint_name>
    - Primary key:   pk_<table>
"""

from sqlalchemy import MetaData

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_N_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}


def make_metadata() -> MetaData:
    """Return a fresh `MetaData` using VESTA's naming convention."""
    return MetaData(naming_convention=NAMING_CONVENTION)
