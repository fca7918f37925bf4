"""Assertion helpers used by conformance steps.

Every helper raises `AssertionViolation` with a message naming what was
checked, the expected value and the observed value.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sized
from typing import Any

from .errors import AssertionViolation

GLOB_WILDCARD = "*"


def expect(condition: bool, message: str) -> None:
    """Raise `AssertionViolation` with *message* unless *condition* holds."""
    if not condition:
        raise AssertionViolation(message)


def expect_equal(expected: Any, actual: Any, what: str = "value") -> None:
    expect(expected == actual, f"{what}: expected {expected!r}, got {actual!r}")


def expect_true(value: Any, what: str = "value") -> None:
    expect(bool(value), f"{what}: expected a truthy value, got {value!r}")


def expect_none(value: Any, what: str = "value") -> None:
    expect(value is None, f"{what}: expected None, got {value!r}")


def expect_not_none(value: Any, what: str = "value") -> None:
    expect(value is not None, f"{what}: expected a value, got None")


def expect_field(entity: Mapping[str, Any], field: str, expected: Any) -> None:
    """Check that *entity* has *field* set to *expected*."""
    expect(field in entity, f"field {field!r}: expected {expected!r}, field is absent")
    expect_equal(expected, entity[field], f"field {field!r}")


def expect_absent(entity: Mapping[str, Any], field: str) -> None:
    expect(
        field not in entity,
        f"field {field!r}: expected absent, got {entity.get(field)!r}",
    )


def expect_len(items: Sized, size: int, what: str = "result") -> None:
    expect(len(items) == size, f"{what}: expected {size} item(s), got {len(items)}")


def expect_at_least(items: Sized, size: int, what: str = "result") -> None:
    expect(
        len(items) >= size,
        f"{what}: expected at least {size} item(s), got {len(items)}",
    )


def glob_match(pattern: str, text: str) -> bool:
    """Return True if *text* matches *pattern* in full.

    ``*`` matches any run of characters (including none); every other
    character matches itself.
    """
    regex = "".join(
        ".*" if char == GLOB_WILDCARD else re.escape(char) for char in pattern
    )
    return re.fullmatch(regex, text, flags=re.DOTALL) is not None


def expect_match(pattern: str, text: str, what: str = "rendering") -> None:
    expect(glob_match(pattern, text), f"{what}: {text!r} does not match {pattern!r}")
