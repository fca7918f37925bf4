"""Run a set of suites against one backend and shut it down.

`run_conformance` is the single entry point used by the CLI and by backend
authors' own test suites::

    store = SqlAlchemyEntityStore.from_url("sqlite+aiosqlite:///:memory:")
    result = await run_conformance(store, reporter=ConsoleReporter())
    result.raise_for_failure()

Suites run one after another by default. With ``concurrent=True`` each suite
runs in its own task; suites sharing a namespace would then trample each
other's fixtures, so that combination is refused up front.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from itertools import combinations

from vesta.interfaces.entity_store import EntityStore

from .reporting import Reporter
from .runner import Suite, SuiteOutcome, SuiteRunner
from .settings import SuiteSettings
from .shutdown import (
    POLL_INTERVAL,
    RETRY_LIMIT,
    CompletionCounter,
    ShutdownCoordinator,
    ShutdownReport,
)
from .suites import default_suites

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ConformanceResult:
    """Outcome of a conformance run.

    Attributes:
        outcomes: Suite outcomes keyed by suite name, in completion order.
        shutdown: How the store was closed.
        incomplete: Suites still running when the store was closed.
    """

    outcomes: dict[str, SuiteOutcome]
    shutdown: ShutdownReport
    incomplete: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.incomplete and all(o.passed for o in self.outcomes.values())

    @property
    def failures(self) -> list[SuiteOutcome]:
        return [outcome for outcome in self.outcomes.values() if not outcome.passed]

    def raise_for_failure(self) -> None:
        """Re-raise the first suite error, or fail on incomplete suites."""
        for outcome in self.failures:
            outcome.raise_for_failure()
        if self.incomplete:
            raise TimeoutError(
                f"suite(s) did not complete before shutdown: {', '.join(self.incomplete)}"
            )


def check_disjoint(suites: Iterable[Suite]) -> None:
    """Refuse suites whose namespaces overlap.

    Raises:
        ValueError: If two suites declare a common namespace.
    """
    for first, second in combinations(suites, 2):
        if shared := first.parsed_namespaces() & second.parsed_namespaces():
            names = ", ".join(sorted(str(ns) for ns in shared))
            raise ValueError(
                f"suites {first.name!r} and {second.name!r} cannot run "
                f"concurrently: both use {names}"
            )


async def run_conformance(
    store: EntityStore,
    settings: SuiteSettings | None = None,
    suites: Iterable[Suite] | None = None,
    *,
    reporter: Reporter | None = None,
    concurrent: bool = False,
    interval: float = POLL_INTERVAL,
    retry_limit: int = RETRY_LIMIT,
) -> ConformanceResult:
    """Run *suites* against *store*, then close it.

    Args:
        store: Backend under test; closed before this returns.
        settings: Expectations for the backend.
        suites: Suites to run; defaults to every built-in suite the store
            supports (see `default_suites`).
        reporter: Receives progress events.
        concurrent: Run suites in parallel tasks instead of in sequence.
        interval: Seconds between shutdown polls.
        retry_limit: Extra shutdown polls before closing regardless.

    Returns:
        The per-suite outcomes and the shutdown report.

    Raises:
        ValueError: If *concurrent* is set and two suites share a namespace.
    """
    selected = list(suites) if suites is not None else default_suites(store)
    if concurrent:
        check_disjoint(selected)

    runner = SuiteRunner(reporter)
    counter = CompletionCounter()
    outcomes: dict[str, SuiteOutcome] = {}

    async def run_suite(suite: Suite) -> None:
        outcomes[suite.name] = await runner.run(
            suite, store, settings, done=counter.increment
        )

    async def run_in_sequence() -> None:
        for suite in selected:
            await run_suite(suite)

    logger.info(
        "Running %d suite(s) %s against %s",
        len(selected),
        "concurrently" if concurrent else "in sequence",
        type(store).__name__,
    )
    if concurrent:
        tasks = [
            asyncio.create_task(run_suite(suite), name=f"suite-{suite.name}")
            for suite in selected
        ]
    else:
        tasks = [asyncio.create_task(run_in_sequence(), name="suites")]

    coordinator = ShutdownCoordinator(
        store,
        len(selected),
        counter,
        interval=interval,
        retry_limit=retry_limit,
        reporter=reporter,
    )
    try:
        report = await coordinator.wait_and_close()
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)

    for task_result in results:
        if isinstance(task_result, Exception):
            raise task_result

    incomplete = [suite.name for suite in selected if suite.name not in outcomes]
    if incomplete:
        logger.warning("Suites cancelled at shutdown: %s", ", ".join(incomplete))
    return ConformanceResult(outcomes, report, incomplete)
