"""RAW QUERY suite: backend-native queries, plain and parameterized.

Only run against backends that declare ``supports_raw_queries``. The queries
come from `SuiteSettings`; both must list the two products in price order.
"""

from __future__ import annotations

from vesta.domain.entity import Entity

from ..expect import expect_equal, expect_match
from ..runner import StepContext, Suite

RAW = "[Raw query tests]"
PRODUCT = "product"
EXPECTED = (
    "$-/-/product:{id=*;name=apple;price=100},"
    "$-/-/product:{id=*;name=pear;price=200}"
)

suite = Suite(
    "raw_query",
    "RAW QUERY store tests",
    namespaces=(PRODUCT,),
    requires_raw_queries=True,
)


def _render(entities) -> str:
    return ",".join(entity.canonical() for entity in entities)


@suite.step("setup", RAW, "Save the products")
async def save_products(ctx: StepContext) -> None:
    await ctx.store.save(Entity.make(PRODUCT, name="apple", price=100))
    await ctx.store.save(Entity.make(PRODUCT, name="pear", price=200))


@suite.step("string", RAW, "Query with a plain statement")
async def query_string(ctx: StepContext) -> None:
    found = await ctx.store.list(PRODUCT, ctx.settings.raw_query)
    ctx.state["plain"] = _render(found)
    expect_match(EXPECTED, ctx.state["plain"], "plain query result")


@suite.step("params", RAW, "Query with bound parameters")
async def query_params(ctx: StepContext) -> None:
    found = await ctx.store.list(PRODUCT, list(ctx.settings.raw_param_query))
    ctx.state["params"] = _render(found)
    expect_match(EXPECTED, ctx.state["params"], "parameterized query result")


@suite.step("same", RAW, "Both queries return the same records")
async def query_equivalent(ctx: StepContext) -> None:
    expect_equal(ctx.state["plain"], ctx.state["params"], "query results")


@suite.step("teardown", RAW, "Remove the products")
async def remove_products(ctx: StepContext) -> None:
    await ctx.store.remove(PRODUCT, {"all$": True})
    expect_equal(0, len(await ctx.store.list(PRODUCT)), "products after teardown")
