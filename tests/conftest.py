"""Global pytest fixtures for VESTA."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from vesta.interfaces.entity_store import EntityStore


pytest_plugins = [
    "tests.fixtures.stores",
]


# Helper to route to an existing store fixture by name
@pytest.fixture
def store(request: pytest.FixtureRequest) -> EntityStore:
    """Indirection fixture to parametrize over store-providing fixtures.

    Example:
        ```py
        @pytest.mark.parametrize("store", ["memory_store", "sqlite_store"], indirect=True)
        async def test_something(store): ...
        ```
    """
    return request.getfixturevalue(request.param)
