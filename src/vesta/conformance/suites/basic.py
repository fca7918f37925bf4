"""BASIC suite: create, read, update, query and remove."""

from __future__ import annotations

import random
from datetime import datetime
from typing import Any

from vesta.domain.entity import Entity

from ..expect import (
    expect,
    expect_absent,
    expect_at_least,
    expect_equal,
    expect_field,
    expect_len,
    expect_none,
    expect_not_none,
)
from ..runner import StepContext, Suite

DATA = "[Data tests]"
SAVE = "[Save tests]"
LOAD = "[Load tests]"
REMOVE = "[Remove tests]"

FOO = "foo"
BAR = "zen/moon/bar"
FIXED_ID = "0201775f-27c4-7428-b380-44b8f4c529f3"
WEN = datetime(2020, 2, 1)

BAR_TEMPLATE: dict[str, Any] = {
    "name$": "bar",
    "base$": "moon",
    "zone$": "zen",
    "str": "aaa",
    "int": 11,
    "dec": 33.33,
    "bol": False,
    "wen": WEN,
    "arr": [2, 3],
    "obj": {"a": 1, "b": [2], "c": {"d": 3}},
}

suite = Suite("basic", "BASIC store tests", namespaces=(FOO, BAR))


def verify_bar(bar: Entity) -> None:
    """Check the field values written from `BAR_TEMPLATE` survived the store."""
    expect_field(bar, "str", "aaa")
    expect_field(bar, "int", 11)
    expect_field(bar, "dec", 33.33)
    expect_field(bar, "bol", False)
    expect(bar["bol"] is False, f"field 'bol': expected False, got {bar['bol']!r}")
    wen = bar.get("wen")
    rendered = wen.isoformat() if isinstance(wen, datetime) else wen
    expect_equal(WEN.isoformat(), rendered, "field 'wen'")
    expect_equal([2, 3], list(bar.get("arr", ())), "field 'arr'")
    expect_field(bar, "obj", {"a": 1, "b": [2], "c": {"d": 3}})


@suite.step("load0", DATA, "Load non existing entity from store")
async def load_missing(ctx: StepContext) -> None:
    found = await ctx.store.load(FOO, "does-not-exist-at-all-at-all")
    expect_none(found, "load of a missing id")


@suite.step("save1", DATA, "Save an entity to store")
async def save_new(ctx: StepContext) -> None:
    saved = await ctx.store.save(Entity.make(FOO, p1="v1", p3="v3"))
    expect_not_none(saved.id, "assigned id")
    expect_field(saved, "p1", "v1")
    expect_field(saved, "p3", "v3")
    ctx.state["foo1"] = saved


@suite.step("load1", DATA, "Load an existing entity from store")
async def load_saved(ctx: StepContext) -> None:
    foo1: Entity = ctx.state["foo1"]
    loaded = await ctx.store.load(FOO, foo1.id)
    expect_not_none(loaded, "loaded entity")
    expect_equal(foo1.id, loaded.id, "loaded id")
    expect_field(loaded, "p1", "v1")
    ctx.state["foo1"] = loaded


@suite.step("save2", DATA, "Save the same entity again to store")
async def save_update(ctx: StepContext) -> None:
    foo1: Entity = ctx.state["foo1"]
    foo1["p1"] = "v1x"
    foo1["p2"] = "v2"
    del foo1["p3"]
    saved = await ctx.store.save(foo1)
    expect_equal(foo1.id, saved.id, "updated id")
    expect_field(saved, "p1", "v1x")
    expect_field(saved, "p2", "v2")
    if ctx.settings.must_merge:
        expect_field(saved, "p3", "v3")
    else:
        expect_absent(saved, "p3")
    ctx.state["foo1"] = saved


@suite.step("load2", DATA, "Load again the same entity")
async def load_updated(ctx: StepContext) -> None:
    foo1: Entity = ctx.state["foo1"]
    loaded = await ctx.store.load(FOO, foo1.id)
    expect_not_none(loaded, "loaded entity")
    expect_equal(foo1.id, loaded.id, "loaded id")
    expect_field(loaded, "p1", "v1x")
    expect_field(loaded, "p2", "v2")
    if ctx.settings.must_merge:
        expect_field(loaded, "p3", "v3")
    else:
        expect_absent(loaded, "p3")
    ctx.state["foo1"] = loaded


@suite.step("save3", SAVE, "Save an entity with different type of properties")
async def save_typed(ctx: StepContext) -> None:
    bar = Entity.make(BAR_TEMPLATE)
    mark = random.random()
    bar["mark"] = mark
    saved = await ctx.store.save(bar)
    expect_not_none(saved.id, "assigned id")
    verify_bar(saved)
    expect_field(saved, "mark", mark)
    ctx.state["bar"] = saved


@suite.step("save4", SAVE, "Save an entity with a prexisting name")
async def save_second(ctx: StepContext) -> None:
    saved = await ctx.store.save(Entity.make(FOO, p2="v2"))
    expect_not_none(saved.id, "assigned id")
    expect_field(saved, "p2", "v2")
    ctx.state["foo2"] = saved


@suite.step("save5", SAVE, "Save an entity with an id")
async def save_with_id(ctx: StepContext) -> None:
    foo = Entity.make(FOO, p2="v2")
    foo["id$"] = FIXED_ID
    saved = await ctx.store.save(foo)
    expect_equal(FIXED_ID, saved.id, "requested id")
    expect_field(saved, "p2", "v2")
    loaded = await ctx.store.load(FOO, FIXED_ID)
    expect_not_none(loaded, "entity loaded by requested id")


@suite.step("query1", LOAD, "Load a list of entities with one element")
async def list_one(ctx: StepContext) -> None:
    found = await ctx.store.list(BAR, {})
    expect_at_least(found, 1, "bar entities")
    verify_bar(found[0])


@suite.step("query2", LOAD, "Load a list of entities with more than one element")
async def list_many(ctx: StepContext) -> None:
    found = await ctx.store.list(FOO, {})
    expect_at_least(found, 2, "foo entities")


@suite.step("query3", LOAD, "Load an element by id")
async def list_by_id(ctx: StepContext) -> None:
    bar: Entity = ctx.state["bar"]
    found = await ctx.store.list(BAR, {"id": bar.id})
    expect_len(found, 1, "bar entities with id")
    expect_equal(bar.id, found[0].id, "listed id")
    verify_bar(found[0])


@suite.step("query4", LOAD, "Load an element by integer property")
async def list_by_number(ctx: StepContext) -> None:
    bar: Entity = ctx.state["bar"]
    found = await ctx.store.list(BAR, {"mark": bar["mark"]})
    expect_len(found, 1, "bar entities with mark")
    verify_bar(found[0])


@suite.step("query5", LOAD, "Load an element by string property")
async def list_by_string(ctx: StepContext) -> None:
    found = await ctx.store.list(FOO, {"p2": "v2"})
    expect_at_least(found, 2, "foo entities with p2")
    for foo in found:
        expect_field(foo, "p2", "v2")


@suite.step("query6", LOAD, "Load an element by two properties")
async def list_by_two(ctx: StepContext) -> None:
    found = await ctx.store.list(FOO, {"p2": "v2", "p1": "v1x"})
    expect_at_least(found, 1, "foo entities with p1 and p2")
    for foo in found:
        expect_field(foo, "p1", "v1x")
        expect_field(foo, "p2", "v2")


@suite.step("query7", LOAD, "Load a single element by property")
async def load_by_property(ctx: StepContext) -> None:
    foo1: Entity = ctx.state["foo1"]
    loaded = await ctx.store.load(FOO, {"p1": "v1x"})
    expect_not_none(loaded, "loaded entity")
    expect_equal(foo1.id, loaded.id, "loaded id")


@suite.step("save6", SAVE, "Delete a field and save again")
async def save_without_field(ctx: StepContext) -> None:
    saved = await ctx.store.save(Entity.make(FOO, bar="baz"))
    del saved["bar"]
    resaved = await ctx.store.save(saved)
    loaded = await ctx.store.load(FOO, saved.id)
    expect_not_none(loaded, "loaded entity")
    for observed in (resaved, loaded):
        if ctx.settings.must_merge:
            expect_field(observed, "bar", "baz")
        else:
            expect_absent(observed, "bar")


@suite.step("save7", SAVE, "Saved entity does not share state with the original")
async def save_isolated(ctx: StepContext) -> None:
    original = Entity.make(FOO, arr=[1, 2])
    saved = await ctx.store.save(original)
    original["arr"].append(3)
    expect_field(saved, "arr", [1, 2])
    saved["arr"].append(4)
    expect_field(original, "arr", [1, 2, 3])
    loaded = await ctx.store.load(FOO, saved.id)
    expect_not_none(loaded, "loaded entity")
    expect_field(loaded, "arr", [1, 2])


@suite.step("remove0", REMOVE, "Delete a single element")
async def remove_one(ctx: StepContext) -> None:
    await ctx.store.save(Entity.make(FOO, p9="dup"))
    await ctx.store.save(Entity.make(FOO, p9="dup"))
    await ctx.store.remove(FOO, {"p9": "dup"})
    found = await ctx.store.list(FOO, {"p9": "dup"})
    expect_len(found, 1, "remaining foo entities with p9")


@suite.step("remove1", REMOVE, "Delete an element by name")
async def remove_all(ctx: StepContext) -> None:
    await ctx.store.remove(FOO, {"all$": True})
    found = await ctx.store.list(FOO, {})
    expect_len(found, 0, "foo entities after removing all")


@suite.step("remove2", REMOVE, "Delete an element by property")
async def remove_by_property(ctx: StepContext) -> None:
    bar: Entity = ctx.state["bar"]
    await ctx.store.remove(BAR, {"mark": bar["mark"]})
    found = await ctx.store.list(BAR, {"mark": bar["mark"]})
    expect_len(found, 0, "bar entities with mark")
