"""Parsing of ``-L/--logger-level NAME=LEVEL`` options.

Values may be repeated (``-L sqlalchemy=INFO -L aiosqlite=DEBUG``) or given
as one comma/space separated list (``VESTA_LOGGER_LEVELS="a=INFO, b=DEBUG"``).
LEVEL is a standard level name (case-insensitive) or a number.
"""

import logging
import re

import click

DEFAULT_LIB_LEVELS = {"sqlalchemy": logging.WARNING, "aiosqlite": logging.WARNING}

_SEPARATORS = re.compile(r"[,\s]+")


def _normalize_items(value: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """Flatten the raw option value into non-empty ``NAME=LEVEL`` items."""
    if not value:
        return []
    chunks = [value] if isinstance(value, str) else list(value)
    return [item for chunk in chunks for item in _SEPARATORS.split(chunk) if item]


def to_level(text: str) -> int:
    """Convert a level name or number to a numeric logging level.

    Raises:
        ValueError: If *text* is neither a known level name nor an integer.
    """
    text = text.strip()
    if text.lstrip("-").isdigit():
        return int(text)
    if (level := logging.getLevelNamesMapping().get(text.upper())) is None:
        raise ValueError(f"Invalid log level: {text}")
    return level


def parse_log_level(
    ctx: click.Context,  # pylint: disable=unused-argument
    param: click.Parameter | None,  # pylint: disable=unused-argument
    value: str | list[str] | tuple[str, ...] | None,
) -> dict[str, int]:
    """Click callback turning NAME=LEVEL items into a name->level dict.

    `DEFAULT_LIB_LEVELS` apply unless overridden.

    Raises:
        click.BadParameter: If an item is not NAME=LEVEL or LEVEL is invalid.
    """
    levels = dict(DEFAULT_LIB_LEVELS)
    for item in _normalize_items(value):
        name, sep, level_text = item.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"Expected NAME=LEVEL, got {item!r}")
        try:
            levels[name.strip()] = to_level(level_text)
        except ValueError as e:
            raise click.BadParameter(str(e)) from e
    return levels
