"""Settings recognized by the conformance suites."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_RAW_QUERY = "SELECT * FROM product ORDER BY price"
DEFAULT_RAW_PARAM_QUERY: tuple[Any, ...] = (
    "SELECT * FROM product WHERE price >= ? AND price <= ?",
    0,
    1000,
)


@dataclass(frozen=True, slots=True)
class SuiteSettings:
    """Expectations a suite checks the backend against.

    Attributes:
        must_merge: Whether `save` is expected to preserve stored fields that
            are absent from the incoming entity (merge) instead of removing
            them (replace).
        raw_query: Backend-native query listing every ``product`` ordered by
            price; used by the ``raw_query`` suite.
        raw_param_query: ``(statement, *params)`` selecting the same products
            with bound parameters.
    """

    must_merge: bool = False
    raw_query: str = DEFAULT_RAW_QUERY
    raw_param_query: tuple[Any, ...] = DEFAULT_RAW_PARAM_QUERY
