"""LIMITS suite: ``skip$`` and ``limit$`` paging, with and without a sort."""

from __future__ import annotations

from vesta.domain.entity import Entity

from ..expect import expect_equal, expect_len
from ..runner import StepContext, Suite

LIMITS = "[Limits tests]"
FOO = "foo"

suite = Suite("limits", "LIMITS store tests", namespaces=(FOO,))


@suite.step("insert", LIMITS, "Insert three records")
async def insert(ctx: StepContext) -> None:
    for rank in (1, 2, 3):
        await ctx.store.save(Entity.make(FOO, p1=f"v{rank}"))


@suite.step("listall", LIMITS, "List all entities")
async def list_all(ctx: StepContext) -> None:
    found = await ctx.store.list(FOO, {})
    expect_len(found, 3, "foo entities")


@suite.step("limit1skip1", LIMITS, "Skip one, limit one")
async def limit1_skip1(ctx: StepContext) -> None:
    found = await ctx.store.list(FOO, {"sort$": {"p1": 1}, "limit$": 1, "skip$": 1})
    expect_len(found, 1, "paged foo entities")
    expect_equal("v2", found[0]["p1"], "paged p1")


@suite.step("limit2skip3", LIMITS, "Skip past the end")
async def limit2_skip3(ctx: StepContext) -> None:
    found = await ctx.store.list(FOO, {"limit$": 2, "skip$": 3})
    expect_len(found, 0, "paged foo entities")


@suite.step("limit5skip2", LIMITS, "Limit beyond the remaining records")
async def limit5_skip2(ctx: StepContext) -> None:
    found = await ctx.store.list(FOO, {"sort$": {"p1": 1}, "limit$": 5, "skip$": 2})
    expect_len(found, 1, "paged foo entities")
    expect_equal("v3", found[0]["p1"], "paged p1")
