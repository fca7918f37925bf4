"""Carry-over state shared by the steps of one suite run.

A fresh `FixtureState` is created for every run of a suite and discarded when
the run ends, so suites never observe state from a previous run. Only the
single active run reads and writes it.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from .errors import MissingFixtureError


class FixtureState:
    """Named values one step leaves for later steps (e.g. a saved entity).

    Reading a key no earlier step wrote raises `MissingFixtureError`, which
    aborts the suite like any other assertion violation.
    """

    __slots__ = ("_values",)

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def __getitem__(self, key: str) -> Any:
        try:
            return self._values[key]
        except KeyError:
            raise MissingFixtureError(key) from None

    def __setitem__(self, key: str, value: Any) -> None:
        self._values[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for *key*, or *default* if no step set it."""
        return self._values.get(key, default)
