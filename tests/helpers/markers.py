"""Directory-based default markers shared by the suite-level conftests."""

from __future__ import annotations

from pathlib import Path

import pytest


def mark_items_under(root: Path, marker: str, items: list[pytest.Item]) -> None:
    """Add *marker* to every item collected below *root* that lacks it."""
    for item in items:
        if root in item.path.resolve().parents and not any(
            m.name == marker for m in item.iter_markers()
        ):
            item.add_marker(getattr(pytest.mark, marker))
