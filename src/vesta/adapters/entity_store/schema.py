"""Entity table schema.

Each namespace is stored in its own table, created on first write (``product``,
``zen__moon__bar``; see `table_name`).

| Column     | Purpose                                                     |
|------------|-------------------------------------------------------------|
| `seq`      | rowid-backed sequence; natural storage order                |
| `id`       | entity identity, UNIQUE                                     |
| `data`     | authoritative JSON field set (see `codec`)                  |
| *mirrors*  | untyped copies of top-level scalar fields, added on demand  |

Mirror columns exist so raw SQL can filter and order on fields natively
(``SELECT * FROM product WHERE price >= ?``). They are declared without a type
so SQLite keeps the stored value's own type. `data` stays the source of truth:
non-scalar fields are never mirrored, and fields whose names collide
(case-insensitively) with an existing column are not mirrored either.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Column, Integer, String, Table
from sqlalchemy.types import NullType, TypeDecorator

from vesta.domain.entity import Namespace
from vesta.domain.errors import InvalidNamespaceError

from .codec import tag_fields, untag_fields

if TYPE_CHECKING:
    from sqlalchemy import MetaData
    from sqlalchemy.engine.interfaces import Dialect

SEQ_COLUMN = "seq"
ID_COLUMN = "id"
DATA_COLUMN = "data"
RESERVED_COLUMNS = frozenset({SEQ_COLUMN, ID_COLUMN, DATA_COLUMN})

TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
NAMESPACE_PART_PATTERN = re.compile(r"^[a-z0-9]+(?:_[a-z0-9]+)*$")
TABLE_PART_SEPARATOR = "__"


class EntityFields(TypeDecorator[dict[str, Any]]):  # pylint: disable=too-many-ancestors
    """Field set stored as JSON, with datetimes tagged (see `codec`)."""

    impl = JSON(none_as_null=True)
    cache_ok = True

    def process_bind_param(
        self, value: Mapping[str, Any] | None, dialect: Dialect
    ) -> dict[str, Any] | None:
        if value is None:
            return None
        return tag_fields(value)

    def process_result_value(
        self, value: Any, dialect: Dialect
    ) -> dict[str, Any] | None:
        if value is None:
            return None
        return untag_fields(value)

    def process_literal_param(self, value: Any, dialect: Dialect) -> Any:
        return self.process_bind_param(value, dialect)

    @property
    def python_type(self) -> type[dict]:
        return dict


def table_name(namespace: Namespace) -> str:
    """Return the table name for *namespace*.

    A namespace with only a name maps to that name. Otherwise all three parts
    are joined with ``__`` and an unset part is left empty, so
    ``zen/moon/bar`` maps to ``zen__moon__bar`` and ``-/moon/bar`` to
    ``__moon__bar``. Parts are lower case (SQLite table names ignore case),
    may not start or end with ``_`` and may not contain ``__``, which keeps
    the mapping one-to-one.

    Raises:
        InvalidNamespaceError: If the namespace has no name, a part is not a
            plain identifier fragment, or the name is reserved by SQLite.
    """
    if namespace.name is None:
        raise InvalidNamespaceError(str(namespace), "a name is required")
    parts = (namespace.zone, namespace.base, namespace.name)
    for part in parts:
        if part is not None and not NAMESPACE_PART_PATTERN.match(part):
            raise InvalidNamespaceError(
                str(namespace),
                f"part {part!r} may only contain lower-case letters, digits and"
                " single inner '_'",
            )
    if namespace.zone is None and namespace.base is None:
        name = namespace.name
    else:
        name = TABLE_PART_SEPARATOR.join(part or "" for part in parts)
    if not TABLE_NAME_PATTERN.match(name):
        raise InvalidNamespaceError(str(namespace), "may not start with a digit")
    if name.lower().startswith("sqlite_"):
        raise InvalidNamespaceError(str(namespace), "'sqlite_' names are reserved")
    return name


def build_entity_table(
    metadata: MetaData, name: str, mirror_columns: Iterable[str] = ()
) -> Table:
    """Build the `Table` for one namespace.

    Args:
        metadata: Metadata owned by the store.
        name: Table name (see `table_name`).
        mirror_columns: Existing mirror columns (when reflecting a table).
    """
    return Table(
        name,
        metadata,
        Column(SEQ_COLUMN, Integer, primary_key=True, autoincrement=True),
        Column(ID_COLUMN, String(200), nullable=False, unique=True),
        Column(DATA_COLUMN, EntityFields(), nullable=False),
        *(Column(column, NullType()) for column in mirror_columns),
    )


def is_mirrorable(value: Any) -> bool:
    """Return True if *value* is a top-level scalar worth mirroring."""
    return isinstance(value, (str, int, float, bool, datetime))


def mirror_value(value: Any) -> Any:
    """Convert a field value to what is written to its mirror column."""
    if isinstance(value, datetime):
        return value.isoformat()
    return value if is_mirrorable(value) else None


def mirror_candidates(table: Table, fields: Mapping[str, Any]) -> list[str]:
    """Return field names that need a new mirror column on *table*.

    SQLite compares column names case-insensitively, so of several new fields
    differing only by case just the first is mirrored.
    """
    taken = {column.name.lower() for column in table.columns}
    candidates: list[str] = []
    for name, value in fields.items():
        if not is_mirrorable(value) or name.lower() in taken:
            continue
        taken.add(name.lower())
        candidates.append(name)
    return candidates


def mirror_row(table: Table, fields: Mapping[str, Any]) -> dict[str, Any]:
    """Return the mirror column values for *fields* (NULL for absent fields)."""
    return {
        column.name: mirror_value(fields.get(column.name))
        for column in table.columns
        if column.name not in RESERVED_COLUMNS
    }
