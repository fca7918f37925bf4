"""Unit tests for `run_conformance` scheduling and shutdown."""

from __future__ import annotations

import asyncio

import pytest

from vesta.adapters.entity_store.memory import InMemoryEntityStore
from vesta.conformance import StepContext, Suite, run_conformance
from vesta.conformance.harness import check_disjoint
from vesta.conformance.suites import SUITES, default_suites
from vesta.interfaces.entity_store import StoreClosedError

# pylint: disable=magic-value-comparison


def _quick_suite(name: str, namespace: str, log: list[str]) -> Suite:
    suite = Suite(name, name.upper(), namespaces=(namespace,))

    @suite.step("work", "[Quick]", f"{name} works")
    async def work(ctx: StepContext) -> None:
        log.append(f"{name}:start")
        await asyncio.sleep(0)
        log.append(f"{name}:end")

    return suite


async def test_sequential_runs_every_suite_then_closes():
    store = InMemoryEntityStore()
    log: list[str] = []
    suites = [_quick_suite("a", "ns_a", log), _quick_suite("b", "ns_a", log)]
    result = await run_conformance(store, suites=suites, interval=0.01)
    assert result.passed
    assert list(result.outcomes) == ["a", "b"]
    assert log == ["a:start", "a:end", "b:start", "b:end"]
    assert result.shutdown.confirmed
    with pytest.raises(StoreClosedError):
        await store.list("ns_a")


async def test_concurrent_runs_interleave():
    store = InMemoryEntityStore()
    log: list[str] = []
    suites = [_quick_suite("a", "ns_a", log), _quick_suite("b", "ns_b", log)]
    result = await run_conformance(store, suites=suites, concurrent=True, interval=0.01)
    assert result.passed
    assert set(result.outcomes) == {"a", "b"}
    assert log.index("b:start") < log.index("a:end")


async def test_concurrent_refuses_shared_namespaces():
    log: list[str] = []
    suites = [_quick_suite("a", "foo", log), _quick_suite("b", "foo", log)]
    with pytest.raises(ValueError, match="cannot run concurrently"):
        await run_conformance(InMemoryEntityStore(), suites=suites, concurrent=True)
    assert log == []


def test_check_disjoint_compares_parsed_namespaces():
    log: list[str] = []
    with pytest.raises(ValueError):
        check_disjoint(
            [_quick_suite("a", "-/-/foo", log), _quick_suite("b", "foo", log)]
        )
    check_disjoint(
        [_quick_suite("a", "zen/moon/bar", log), _quick_suite("b", "bar", log)]
    )


async def test_suites_still_running_at_shutdown_are_cancelled():
    store = InMemoryEntityStore()
    suite = Suite("slow", "SLOW")

    @suite.step("hang", "[Slow]", "never finishes in time")
    async def hang(ctx: StepContext) -> None:
        await asyncio.sleep(60)

    result = await run_conformance(
        store, suites=[suite], interval=0.01, retry_limit=2
    )
    assert not result.passed
    assert result.incomplete == ["slow"]
    assert not result.shutdown.confirmed
    assert result.shutdown.attempts == 3
    with pytest.raises(TimeoutError):
        result.raise_for_failure()


async def test_failures_are_collected_not_raised():
    store = InMemoryEntityStore()
    suite = Suite("broken", "BROKEN")

    @suite.step("fail", "[Broken]", "always fails")
    async def fail(ctx: StepContext) -> None:
        raise AssertionError("nope")

    result = await run_conformance(store, suites=[suite], interval=0.01)
    assert not result.passed
    assert [o.suite for o in result.failures] == ["broken"]
    with pytest.raises(AssertionError, match="nope"):
        result.raise_for_failure()


def test_default_suites_skip_raw_queries_for_memory_store():
    names = [suite.name for suite in default_suites(InMemoryEntityStore())]
    assert names == ["basic", "sort", "limits"]
    assert set(SUITES) == {"basic", "sort", "limits", "raw_query"}
