"""JSON codec for entity field sets.

JSON has no datetime type, so datetimes are tagged on the way in and restored
on the way out::

    {"wen": datetime(2020, 2, 1)}  <->  {"wen": {"$date": "2020-02-01T00:00:00"}}

User keys starting with ``$`` get one more ``$`` when stored, so a user mapping
can never be mistaken for a tag: ``{"$date": "x"}`` is stored as
``{"$$date": "x"}`` and comes back unchanged.

Tuples are stored as lists. Values are validated against the supported field
variants before encoding (`InvalidFieldValueError` on failure).
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from vesta.domain.entity import validate_fields

DATE_TAG = "$date"
ESCAPE = "$"


def _escape(key: str) -> str:
    return ESCAPE + key if key.startswith(ESCAPE) else key


def _tag(value: Any) -> Any:
    if isinstance(value, datetime):
        return {DATE_TAG: value.isoformat()}
    if isinstance(value, Mapping):
        return {_escape(key): _tag(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_tag(item) for item in value]
    return value


def _untag(value: Any) -> Any:
    if isinstance(value, list):
        return [_untag(item) for item in value]
    if not isinstance(value, dict):
        return value
    if DATE_TAG in value:
        if len(value) != 1 or not isinstance(value[DATE_TAG], str):
            raise ValueError(f"malformed date tag: {value!r}")
        return datetime.fromisoformat(value[DATE_TAG])
    return {
        key[1:] if key.startswith(ESCAPE) else key: _untag(item)
        for key, item in value.items()
    }


def tag_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Return the JSON-ready form of a field set.

    Raises:
        InvalidFieldValueError: If a value is outside the supported variants.
    """
    validate_fields(fields)
    return _tag(fields)


def untag_fields(stored: Any) -> dict[str, Any]:
    """Restore a field set produced by `tag_fields`.

    Raises:
        ValueError: If *stored* is not an object or holds a malformed tag.
    """
    if not isinstance(stored, dict):
        raise ValueError(f"expected a JSON object, got {type(stored).__name__}")
    return _untag(stored)


def decode_fields(text: str | bytes) -> dict[str, Any]:
    """Deserialize the JSON text of a `data` column (as raw SQL returns it)."""
    return untag_fields(json.loads(text))
