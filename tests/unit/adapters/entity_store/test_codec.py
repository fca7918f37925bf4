"""Unit tests for the JSON field codec."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from vesta.adapters.entity_store.codec import (
    DATE_TAG,
    decode_fields,
    tag_fields,
    untag_fields,
)
from vesta.domain.errors import InvalidFieldValueError

# pylint: disable=magic-value-comparison


def test_datetimes_are_tagged_at_any_depth():
    fields = {"wen": datetime(2020, 2, 1), "obj": {"when": [datetime(2021, 3, 4, 5, 6)]}}
    stored = tag_fields(fields)
    assert stored["wen"] == {DATE_TAG: "2020-02-01T00:00:00"}
    assert stored["obj"]["when"][0] == {DATE_TAG: "2021-03-04T05:06:00"}
    assert untag_fields(stored) == fields


def test_aware_datetimes_keep_their_offset():
    wen = datetime(2020, 2, 1, 12, tzinfo=timezone.utc)
    assert untag_fields(tag_fields({"wen": wen}))["wen"] == wen


def test_tuples_come_back_as_lists():
    assert untag_fields(tag_fields({"arr": (2, 3)})) == {"arr": [2, 3]}


@pytest.mark.parametrize(
    "obj",
    [
        {DATE_TAG: "2020-02-01"},
        {DATE_TAG: "not a date"},
        {DATE_TAG: "2020-02-01", "other": 1},
        {"$$date": 1, "$": 2, "$ne": {DATE_TAG: 3}},
    ],
)
def test_user_dollar_keys_are_never_read_as_tags(obj):
    stored = tag_fields({"obj": obj})
    assert DATE_TAG not in stored["obj"]
    assert untag_fields(json.loads(json.dumps(stored))) == {"obj": obj}


def test_malformed_tags_are_rejected():
    with pytest.raises(ValueError, match="malformed date tag"):
        untag_fields({"wen": {DATE_TAG: 1}})


def test_unsupported_values_are_rejected():
    with pytest.raises(InvalidFieldValueError):
        tag_fields({"bad": {1, 2}})


def test_decode_reads_column_text():
    text = json.dumps(tag_fields({"wen": datetime(2020, 2, 1), "obj": {"$x": 1}}))
    assert decode_fields(text) == {"wen": datetime(2020, 2, 1), "obj": {"$x": 1}}


@pytest.mark.parametrize("text", ["[1, 2]", '"text"', "3"])
def test_decode_requires_an_object(text):
    with pytest.raises(ValueError):
        decode_fields(text)
