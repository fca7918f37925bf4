"""Built-in conformance suites."""

from __future__ import annotations

from typing import TYPE_CHECKING

from . import basic, limits, raw_query, sort

if TYPE_CHECKING:
    from vesta.interfaces.entity_store import EntityStore

    from ..runner import Suite

SUITES: dict[str, Suite] = {
    module.suite.name: module.suite for module in (basic, sort, limits, raw_query)
}


def get_suite(name: str) -> Suite:
    """Return the built-in suite called *name*.

    Raises:
        KeyError: If there is no such suite.
    """
    try:
        return SUITES[name]
    except KeyError:
        raise KeyError(
            f"unknown suite {name!r}; choose from {', '.join(SUITES)}"
        ) from None


def default_suites(store: EntityStore) -> list[Suite]:
    """Every built-in suite *store* can run, in declaration order."""
    return [
        suite
        for suite in SUITES.values()
        if store.supports_raw_queries or not suite.requires_raw_queries
    ]
