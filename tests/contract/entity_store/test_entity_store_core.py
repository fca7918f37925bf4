"""Contract tests for EntityStore implementations.

Every test runs against each backend of the `entity_store` fixture, including
the merge-on-save variants; expectations that depend on the merge policy read
it from `store.merge`.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import pytest

from vesta.domain.entity import Entity, Namespace
from vesta.domain.errors import InvalidFieldValueError, InvalidQueryError
from vesta.interfaces.entity_store import DuplicateIdError, StoreClosedError

if TYPE_CHECKING:
    from vesta.interfaces.entity_store import EntityStore

# pylint: disable=magic-value-comparison

BAR = "zen/moon/bar"


async def _save_all(store: EntityStore, namespace: str, *field_sets: dict) -> list[Entity]:
    return [await store.save(Entity.make(namespace, fields)) for fields in field_sets]


# ---------------------------------------------------------------------------
# load
# ---------------------------------------------------------------------------


async def test_load_missing_returns_none(entity_store: EntityStore):
    assert await entity_store.load("foo", "does-not-exist-at-all-at-all") is None
    await entity_store.save(Entity.make("foo", p1="v1"))
    assert await entity_store.load("foo", "does-not-exist-at-all-at-all") is None


async def test_load_by_selector_returns_first_in_natural_order(entity_store: EntityStore):
    first, _ = await _save_all(entity_store, "foo", {"k": "x", "n": 1}, {"k": "x", "n": 2})
    loaded = await entity_store.load("foo", {"k": "x"})
    assert loaded is not None
    assert loaded.id == first.id


async def test_load_honours_sort(entity_store: EntityStore):
    await _save_all(entity_store, "foo", {"n": 1}, {"n": 3}, {"n": 2})
    loaded = await entity_store.load("foo", {"sort$": {"n": -1}})
    assert loaded is not None
    assert loaded["n"] == 3


# ---------------------------------------------------------------------------
# save
# ---------------------------------------------------------------------------


async def test_save_assigns_identity_without_touching_the_argument(
    entity_store: EntityStore,
):
    foo = Entity.make("foo", p1="v1")
    saved = await entity_store.save(foo)
    assert saved.id
    assert saved.namespace == Namespace(name="foo")
    assert dict(saved) == {"p1": "v1"}
    assert foo.id is None


async def test_saved_entity_is_an_independent_copy(entity_store: EntityStore):
    foo = Entity.make("foo", arr=[1, 2])
    saved = await entity_store.save(foo)
    foo["arr"].append(3)
    saved["arr"].append(4)
    loaded = await entity_store.load("foo", saved.id)
    assert loaded is not None
    assert loaded["arr"] == [1, 2]
    loaded["arr"].append(5)
    again = await entity_store.load("foo", saved.id)
    assert again is not None
    assert again["arr"] == [1, 2]


async def test_identities_are_unique(entity_store: EntityStore):
    saved = await _save_all(entity_store, "foo", *({"n": n} for n in range(20)))
    assert len({entity.id for entity in saved}) == 20


async def test_save_with_id_directive_uses_it(entity_store: EntityStore):
    foo = Entity.make("foo", p2="v2")
    foo["id$"] = "0201775f-27c4-7428-b380-44b8f4c529f3"
    saved = await entity_store.save(foo)
    assert saved.id == "0201775f-27c4-7428-b380-44b8f4c529f3"
    assert "id$" not in saved
    assert await entity_store.load("foo", saved.id) == saved


async def test_duplicate_id_directive_is_rejected(entity_store: EntityStore):
    first = Entity.make("foo", p="x")
    first["id$"] = "fixed"
    await entity_store.save(first)
    second = Entity.make("foo", p="y")
    second["id$"] = "fixed"
    with pytest.raises(DuplicateIdError):
        await entity_store.save(second)
    assert [e["p"] for e in await entity_store.list("foo")] == ["x"]


async def test_update_replaces_or_merges(entity_store: EntityStore):
    saved = await entity_store.save(Entity.make("foo", p1="v1", p3="v3"))
    saved["p1"] = "v1x"
    saved["p2"] = "v2"
    del saved["p3"]
    updated = await entity_store.save(saved)
    loaded = await entity_store.load("foo", saved.id)
    assert loaded is not None
    for observed in (updated, loaded):
        assert observed.id == saved.id
        assert observed["p1"] == "v1x"
        assert observed["p2"] == "v2"
        if entity_store.merge:
            assert observed["p3"] == "v3"
        else:
            assert "p3" not in observed
    assert len(await entity_store.list("foo")) == 1


async def test_save_with_unknown_identity_upserts(entity_store: EntityStore):
    ghost = Entity(Namespace(name="foo"), {"p": 1}, id="ghost")
    saved = await entity_store.save(ghost)
    assert saved.id == "ghost"
    assert await entity_store.load("foo", "ghost") == saved


async def test_supported_value_types_survive(entity_store: EntityStore):
    fields = {
        "str": "aaa",
        "int": 11,
        "dec": 33.33,
        "bol": False,
        "wen": datetime(2020, 2, 1),
        "arr": [2, 3],
        "obj": {"a": 1, "b": [2], "c": {"d": 3}},
        "nothing": None,
    }
    saved = await entity_store.save(Entity.make(BAR, fields))
    loaded = await entity_store.load(BAR, saved.id)
    assert loaded is not None
    assert dict(loaded) == fields
    assert loaded["bol"] is False
    assert isinstance(loaded["int"], int)
    assert isinstance(loaded["wen"], datetime)


async def test_dollar_keys_in_nested_objects_survive(entity_store: EntityStore):
    fields = {
        "obj": {"$date": "2020-01-01"},
        "odd": {"$date": "not a date"},
        "deep": [{"$$date": 1, "$ne": {"$date": "x", "y": 2}}],
    }
    saved = await entity_store.save(Entity.make("foo", fields))
    loaded = await entity_store.load("foo", saved.id)
    assert loaded is not None
    assert dict(loaded) == fields
    assert [dict(e) for e in await entity_store.list("foo")] == [fields]


async def test_field_names_differing_only_by_case(entity_store: EntityStore):
    saved = await entity_store.save(Entity.make("foo", Price=1, price=2))
    loaded = await entity_store.load("foo", saved.id)
    assert loaded is not None
    assert (loaded["Price"], loaded["price"]) == (1, 2)
    assert [e.id for e in await entity_store.list("foo", {"price": 2})] == [saved.id]


async def test_unsupported_values_are_rejected_before_storing(entity_store: EntityStore):
    with pytest.raises(InvalidFieldValueError):
        await entity_store.save(Entity.make("foo", bad={1, 2}))
    assert await entity_store.list("foo") == []


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


async def test_list_returns_natural_order(entity_store: EntityStore):
    saved = await _save_all(entity_store, "foo", {"n": 2}, {"n": 1}, {"n": 3})
    listed = await entity_store.list("foo", {})
    assert [e.id for e in listed] == [e.id for e in saved]
    assert await entity_store.list("foo") == listed


async def test_list_on_unknown_namespace_is_empty(entity_store: EntityStore):
    assert await entity_store.list("never_written") == []


async def test_selector_entries_are_anded(entity_store: EntityStore):
    await _save_all(
        entity_store,
        "foo",
        {"p1": "v1x", "p2": "v2"},
        {"p2": "v2"},
        {"p1": "v1x"},
    )
    assert len(await entity_store.list("foo", {"p2": "v2"})) == 2
    both = await entity_store.list("foo", {"p2": "v2", "p1": "v1x"})
    assert len(both) == 1
    assert dict(both[0]) == {"p1": "v1x", "p2": "v2"}


async def test_selector_by_id_and_number(entity_store: EntityStore):
    mark = 0.6180339887
    saved, _ = await _save_all(entity_store, BAR, {"mark": mark}, {"mark": 0.5})
    assert [e.id for e in await entity_store.list(BAR, {"id": saved.id})] == [saved.id]
    assert [e.id for e in await entity_store.list(BAR, {"mark": mark})] == [saved.id]


async def test_boolean_selectors_are_type_strict(entity_store: EntityStore):
    await _save_all(entity_store, "foo", {"flag": True}, {"flag": 1}, {"flag": False})
    assert [e["flag"] for e in await entity_store.list("foo", {"flag": True})] == [True]
    assert [e["flag"] for e in await entity_store.list("foo", {"flag": 1})] == [1]


async def test_sort_ascending_and_descending(entity_store: EntityStore):
    await _save_all(entity_store, "foo", {"p1": "v2"}, {"p1": "v1"}, {"p1": "v3"})
    asc = await entity_store.list("foo", {"sort$": {"p1": 1}})
    desc = await entity_store.list("foo", {"sort$": {"p1": -1}})
    assert [e["p1"] for e in asc] == ["v1", "v2", "v3"]
    assert [e["p1"] for e in desc] == ["v3", "v2", "v1"]


async def test_sort_ties_keep_natural_order(entity_store: EntityStore):
    saved = await _save_all(
        entity_store, "foo", {"g": 1, "n": "a"}, {"g": 0, "n": "b"}, {"g": 1, "n": "c"}
    )
    listed = await entity_store.list("foo", {"sort$": {"g": 1}})
    assert [e["n"] for e in listed] == ["b", "a", "c"]
    assert {e.id for e in listed} == {e.id for e in saved}


@pytest.mark.parametrize(
    ("skip", "limit", "expected"),
    [(1, 1, ["v2"]), (3, 2, []), (2, 5, ["v3"]), (0, 0, []), (0, None, ["v1", "v2", "v3"])],
)
async def test_skip_and_limit_apply_after_sort(entity_store, skip, limit, expected):
    await _save_all(entity_store, "foo", {"p1": "v3"}, {"p1": "v1"}, {"p1": "v2"})
    query: dict = {"sort$": {"p1": 1}, "skip$": skip}
    if limit is not None:
        query["limit$"] = limit
    assert [e["p1"] for e in await entity_store.list("foo", query)] == expected


async def test_invalid_directives_are_rejected(entity_store: EntityStore):
    with pytest.raises(InvalidQueryError):
        await entity_store.list("foo", {"limit$": -1})


# ---------------------------------------------------------------------------
# remove
# ---------------------------------------------------------------------------


async def test_remove_without_all_removes_one_match(entity_store: EntityStore):
    first, second = await _save_all(entity_store, "foo", {"p9": "dup"}, {"p9": "dup"})
    await entity_store.remove("foo", {"p9": "dup"})
    remaining = await entity_store.list("foo", {"p9": "dup"})
    assert [e.id for e in remaining] == [second.id]
    assert await entity_store.load("foo", first.id) is None


async def test_remove_all(entity_store: EntityStore):
    await _save_all(entity_store, "foo", {"p": 1}, {"p": 2}, {"q": 3})
    await entity_store.remove("foo", {"all$": True})
    assert await entity_store.list("foo", {}) == []


async def test_remove_by_property_and_by_id(entity_store: EntityStore):
    keep, drop = await _save_all(entity_store, BAR, {"mark": 1}, {"mark": 2})
    await entity_store.remove(BAR, {"mark": 2})
    assert await entity_store.list(BAR, {"mark": 2}) == []
    await entity_store.remove(BAR, keep.id)
    assert await entity_store.load(BAR, keep.id) is None
    assert drop.id != keep.id


async def test_remove_without_matches_is_a_no_op(entity_store: EntityStore):
    await entity_store.remove("never_written", {"all$": True})
    await entity_store.save(Entity.make("foo", p=1))
    await entity_store.remove("foo", {"p": 2})
    assert len(await entity_store.list("foo")) == 1


# ---------------------------------------------------------------------------
# namespaces & lifecycle
# ---------------------------------------------------------------------------


async def test_namespaces_are_isolated(entity_store: EntityStore):
    await entity_store.save(Entity.make("foo", p=1))
    await entity_store.save(Entity.make("zen/moon/foo", p=2))
    assert [e["p"] for e in await entity_store.list("foo")] == [1]
    assert [e["p"] for e in await entity_store.list("zen/moon/foo")] == [2]
    await entity_store.remove("foo", {"all$": True})
    assert len(await entity_store.list("zen/moon/foo")) == 1


@pytest.mark.parametrize(
    ("stored_in", "listed_in"),
    [
        ("a/-/foo", "-/a/foo"),
        ("-/a/foo", "a/-/foo"),
        ("a/-/foo", "a_foo"),
        ("zen_moon/bar", "zen/moon/bar"),
        ("zen/moon/bar", "zen_moon/bar"),
    ],
)
async def test_namespaces_with_similar_parts_are_isolated(
    entity_store: EntityStore, stored_in: str, listed_in: str
):
    await entity_store.save(Entity.make(stored_in, p="here"))
    assert await entity_store.list(listed_in, {}) == []
    await entity_store.remove(listed_in, {"all$": True})
    assert len(await entity_store.list(stored_in, {})) == 1


async def test_closed_store_rejects_operations(entity_store: EntityStore):
    await entity_store.close()
    await entity_store.close()
    with pytest.raises(StoreClosedError):
        await entity_store.load("foo", "x")
    with pytest.raises(StoreClosedError):
        await entity_store.save(Entity.make("foo"))
    with pytest.raises(StoreClosedError):
        await entity_store.list("foo")
    with pytest.raises(StoreClosedError):
        await entity_store.remove("foo", {"all$": True})


async def test_async_context_manager_closes(entity_store: EntityStore):
    async with entity_store as store:
        await store.save(Entity.make("foo", p=1))
    with pytest.raises(StoreClosedError):
        await entity_store.list("foo")
