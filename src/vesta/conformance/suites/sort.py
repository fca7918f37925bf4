"""SORT suite: ascending and descending ``sort$`` over one field."""

from __future__ import annotations

from vesta.domain.entity import Entity

from ..expect import expect_equal, expect_len
from ..runner import StepContext, Suite

SORT = "[Sort tests]"
FOO = "foo"

suite = Suite("sort", "SORT store tests", namespaces=(FOO,))


async def _insert(ctx: StepContext, rank: int) -> None:
    await ctx.store.save(Entity.make(FOO, p1=f"v{rank}", p2=f"v{rank}"))


@suite.step("insert1st", SORT, "Insert 1st record")
async def insert_first(ctx: StepContext) -> None:
    await _insert(ctx, 1)


@suite.step("insert2nd", SORT, "Insert 2nd record")
async def insert_second(ctx: StepContext) -> None:
    await _insert(ctx, 2)


@suite.step("insert3rd", SORT, "Insert 3rd record")
async def insert_third(ctx: StepContext) -> None:
    await _insert(ctx, 3)


@suite.step("listasc", SORT, "List entities sorted ascending")
async def list_ascending(ctx: StepContext) -> None:
    found = await ctx.store.list(FOO, {"sort$": {"p1": 1}})
    expect_len(found, 3, "sorted foo entities")
    expect_equal(["v1", "v2", "v3"], [foo["p1"] for foo in found], "ascending p1")


@suite.step("listdesc", SORT, "List entities sorted descending")
async def list_descending(ctx: StepContext) -> None:
    found = await ctx.store.list(FOO, {"sort$": {"p1": -1}})
    expect_len(found, 3, "sorted foo entities")
    expect_equal(["v3", "v2", "v1"], [foo["p1"] for foo in found], "descending p1")
