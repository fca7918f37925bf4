"""Query model for VESTA.

Selector queries are plain mappings of field name to exact value. Per-operation
modifiers share the same mapping and are parsed out into `Query`:

- ``sort$``: mapping of field name to ``1`` (ascending) or ``-1`` (descending);
- ``limit$``: maximum number of records returned;
- ``skip$``: records discarded from the front of the sorted result;
- ``all$``: `remove` deletes every match instead of a single one.

Raw queries are backend-native strings, optionally parameterized by passing a
sequence ``[statement, *params]``; they are represented by `RawQuery`.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, TypeAlias

from .entity import ID_KEY, is_directive
from .errors import InvalidQueryError

SORT_DIRECTIVE = "sort$"
LIMIT_DIRECTIVE = "limit$"
SKIP_DIRECTIVE = "skip$"
ALL_DIRECTIVE = "all$"

Selector: TypeAlias = Mapping[str, Any]
Criteria: TypeAlias = "str | int | Selector | None"
ListQuery: TypeAlias = "Selector | str | Sequence[Any] | None"


class SortOrder(IntEnum):
    """Sort direction for a ``sort$`` key."""

    ASCENDING = 1
    DESCENDING = -1


def _non_negative_int(directive: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidQueryError(
            f"{directive} must be a non-negative integer, got {value!r}"
        )
    return value


def _parse_sort(value: Any) -> tuple[tuple[str, SortOrder], ...]:
    if not isinstance(value, Mapping):
        raise InvalidQueryError(f"{SORT_DIRECTIVE} must be a mapping, got {value!r}")
    keys = []
    for name, direction in value.items():
        try:
            keys.append((name, SortOrder(direction)))
        except ValueError as e:
            raise InvalidQueryError(
                f"{SORT_DIRECTIVE} direction for {name!r} must be 1 or -1, got {direction!r}"
            ) from e
    return tuple(keys)


@dataclass(frozen=True, slots=True)
class Query:
    """A parsed selector query.

    Attributes:
        selector: Field name → exact value, ANDed. ``id`` matches the identity.
        sort: Sort keys in declaration order.
        limit: Maximum number of records, or None for unbounded.
        skip: Number of records to discard before applying `limit`.
        match_all: Whether `remove` deletes every match.
        extra: Unrecognized ``$`` directives, passed through for backends.
    """

    selector: Mapping[str, Any] = field(default_factory=dict)
    sort: tuple[tuple[str, SortOrder], ...] = ()
    limit: int | None = None
    skip: int = 0
    match_all: bool = False
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def parse(cls, criteria: Criteria) -> Query:
        """Parse load/list/remove criteria into a `Query`.

        Args:
            criteria: None (match everything), an id value, or a selector
                mapping possibly carrying directives.

        Returns:
            The parsed query.

        Raises:
            InvalidQueryError: If a directive is malformed.
        """
        if criteria is None:
            return cls()
        if isinstance(criteria, (str, int)) and not isinstance(criteria, bool):
            return cls(selector={ID_KEY: criteria})
        if not isinstance(criteria, Mapping):
            raise InvalidQueryError(f"unsupported criteria: {criteria!r}")

        selector: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        sort: tuple[tuple[str, SortOrder], ...] = ()
        limit: int | None = None
        skip = 0
        match_all = False
        for key, value in criteria.items():
            if not is_directive(key):
                selector[key] = value
                continue
            match key:
                case "sort$":
                    sort = _parse_sort(value)
                case "limit$":
                    limit = _non_negative_int(key, value)
                case "skip$":
                    skip = _non_negative_int(key, value)
                case "all$":
                    match_all = bool(value)
                case _:
                    extra[key] = value
        return cls(
            selector=selector,
            sort=sort,
            limit=limit,
            skip=skip,
            match_all=match_all,
            extra=extra,
        )


@dataclass(frozen=True, slots=True)
class RawQuery:
    """A backend-native query with optional positional parameters."""

    statement: str
    params: tuple[Any, ...] = ()


def parse_list_query(query: ListQuery) -> Query | RawQuery:
    """Classify the argument of `EntityStore.list`.

    - None or a mapping → `Query`;
    - a string → `RawQuery` without parameters;
    - a sequence ``[statement, *params]`` → parameterized `RawQuery`.

    Raises:
        InvalidQueryError: If the argument has none of these shapes.
    """
    if query is None or isinstance(query, Mapping):
        return Query.parse(query)
    if isinstance(query, str):
        return RawQuery(query)
    if isinstance(query, Sequence) and query and isinstance(query[0], str):
        return RawQuery(query[0], tuple(query[1:]))
    raise InvalidQueryError(f"unsupported list query: {query!r}")
