"""Selector matching, sorting and paging shared by the reference stores.

Backends that cannot push a selector down to their storage engine fetch the
namespace in natural storage order and hand the records to `apply_query`,
which applies the contract's steps in order:

1. keep records matching every selector entry (type-strict equality, so
   ``True`` never matches ``1``);
2. stable sort by each ``sort$`` key (missing values sort after present ones
   when ascending);
3. drop ``skip$`` records, then keep at most ``limit$``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from vesta.domain.entity import ID_KEY, render_value
from vesta.domain.query import Query, SortOrder

_MISSING = object()


@dataclass(frozen=True, slots=True)
class StoredRecord:
    """A persisted record as seen by the selection helpers."""

    id: str
    fields: Mapping[str, Any]


def values_equal(stored: Any, expected: Any) -> bool:
    """Exact-match comparison used by selectors.

    Booleans only equal booleans; numbers compare numerically otherwise.
    """
    if isinstance(stored, bool) or isinstance(expected, bool):
        return (
            isinstance(stored, bool)
            and isinstance(expected, bool)
            and stored is expected
        )
    return bool(stored == expected)


def matches(record: StoredRecord, selector: Mapping[str, Any]) -> bool:
    """Return True if *record* satisfies every entry of *selector*."""
    for name, expected in selector.items():
        if name == ID_KEY:
            if expected is None or record.id != str(expected):
                return False
            continue
        if name not in record.fields:
            return False
        if not values_equal(record.fields[name], expected):
            return False
    return True


def sort_key(value: Any) -> tuple[int, int, Any]:
    """Total ordering across the supported field variants.

    Numbers sort before strings, strings before datetimes; lists and mappings
    sort by their canonical rendering; missing values sort last.
    """
    if value is _MISSING:
        return (2, 0, 0)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, 0, value)
    if isinstance(value, bool):
        return (0, 1, int(value))
    if isinstance(value, str):
        return (0, 2, value)
    if isinstance(value, datetime):
        return (0, 3, value.isoformat())
    return (1, 0, render_value(value))


def sort_records(
    records: Iterable[StoredRecord], sort: Sequence[tuple[str, SortOrder]]
) -> list[StoredRecord]:
    """Stable multi-key sort; the first key is the most significant."""
    ordered = list(records)
    for name, order in reversed(sort):
        ordered.sort(
            key=lambda record, name=name: sort_key(record.fields.get(name, _MISSING)),
            reverse=order is SortOrder.DESCENDING,
        )
    return ordered


def page(
    records: Sequence[StoredRecord], skip: int, limit: int | None
) -> list[StoredRecord]:
    """Drop *skip* records, then keep at most *limit*. Never raises on overrun."""
    window = list(records[skip:])
    return window if limit is None else window[:limit]


def apply_query(records: Iterable[StoredRecord], query: Query) -> list[StoredRecord]:
    """Filter, sort and page *records* (given in natural storage order)."""
    selected = [record for record in records if matches(record, query.selector)]
    if query.sort:
        selected = sort_records(selected, query.sort)
    return page(selected, query.skip, query.limit)
