"""Suite model and runner.

A `Suite` is an ordered list of `Step`s. Running it:

1. creates a fresh `FixtureState`;
2. clears every namespace the suite declares (one ``[Setup]`` step each);
3. runs the steps strictly in order, each after the previous one completed;
4. stops at the first step raising `AssertionError` or `BackendError`,
   recording that step and the error verbatim;
5. calls the completion callback exactly once, whatever the outcome.

Any other exception is a defect in the suite or the runner and propagates
(the completion callback still fires).

Suites are declared with the `Suite.step` decorator::

    sorting = Suite("sort", "SORT store tests", namespaces=("foo",))

    @sorting.step("insert1st", SORT, "Insert 1st record")
    async def insert_first(ctx: StepContext) -> None:
        await ctx.store.save(Entity.make("foo", p1="v1"))
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field

from vesta.domain.entity import Namespace
from vesta.domain.query import ALL_DIRECTIVE
from vesta.interfaces.entity_store import BackendError, EntityStore

from .fixture_state import FixtureState
from .reporting import Reporter
from .settings import SuiteSettings

logger = logging.getLogger(__name__)

SETUP = "[Setup]"

StepAction = Callable[["StepContext"], Awaitable[None]]
DoneCallback = Callable[[], None]


@dataclass(frozen=True, slots=True)
class StepContext:
    """What a step works with: the backend, carry-over state and settings."""

    store: EntityStore
    state: FixtureState
    settings: SuiteSettings


@dataclass(frozen=True, slots=True)
class Step:
    """One named, categorized, asynchronous action within a suite."""

    name: str
    category: str
    description: str
    action: StepAction


@dataclass(slots=True)
class Suite:
    """An ordered collection of steps over a fixed set of namespaces.

    Attributes:
        name: Short identifier used for selection (``basic``, ``sort``...).
        title: Heading printed by reporters.
        namespaces: Namespaces the suite writes to; cleared before the steps.
        steps: Steps in execution order.
        requires_raw_queries: Only run against backends that support them.
    """

    name: str
    title: str
    namespaces: tuple[str, ...] = ()
    steps: list[Step] = field(default_factory=list)
    requires_raw_queries: bool = False

    def step(
        self, name: str, category: str, description: str
    ) -> Callable[[StepAction], StepAction]:
        """Decorator appending an async function as the suite's next step.

        Raises:
            ValueError: If the suite already has a step called *name*.
        """

        def register(action: StepAction) -> StepAction:
            if any(existing.name == name for existing in self.steps):
                raise ValueError(f"suite {self.name!r} already has a step {name!r}")
            self.steps.append(Step(name, category, description, action))
            return action

        return register

    def setup_steps(self) -> list[Step]:
        """Steps removing every record of each declared namespace."""
        return [
            Step(f"clear:{namespace}", SETUP, f"Clear {namespace}", _clear(namespace))
            for namespace in self.namespaces
        ]

    def parsed_namespaces(self) -> set[Namespace]:
        return {Namespace.parse(namespace) for namespace in self.namespaces}


def _clear(namespace: str) -> StepAction:
    async def clear(ctx: StepContext) -> None:
        await ctx.store.remove(namespace, {ALL_DIRECTIVE: True})

    return clear


@dataclass(slots=True)
class StepOutcome:
    step: Step
    passed: bool
    duration: float
    error: BaseException | None = None


@dataclass(slots=True)
class SuiteOutcome:
    """Result of one suite run.

    Attributes:
        suite: Name of the suite.
        steps: Outcomes of the steps that ran, in order (setup included).
        failed_step: Name of the step that aborted the run, if any.
        error: The error raised by that step, unchanged.
    """

    suite: str
    steps: list[StepOutcome] = field(default_factory=list)
    failed_step: str | None = None
    error: BaseException | None = None

    @property
    def passed(self) -> bool:
        return self.error is None

    def raise_for_failure(self) -> None:
        """Re-raise the error that aborted the run, if any."""
        if self.error is not None:
            raise self.error


class SuiteRunner:
    """Runs suites against a backend, reporting progress to a `Reporter`."""

    def __init__(self, reporter: Reporter | None = None) -> None:
        self.reporter = reporter or Reporter()

    async def run(
        self,
        suite: Suite,
        store: EntityStore,
        settings: SuiteSettings | None = None,
        done: DoneCallback | None = None,
    ) -> SuiteOutcome:
        """Run *suite* against *store*.

        Args:
            suite: The suite to run.
            store: Backend under test.
            settings: Expectations for the backend (defaults apply if None).
            done: Called exactly once when the run ends, however it ends.

        Returns:
            The outcome; a failed step does not raise.
        """
        ctx = StepContext(store, FixtureState(), settings or SuiteSettings())
        outcome = SuiteOutcome(suite.name)
        logger.info("Running suite %s (%d steps)", suite.name, len(suite.steps))
        self.reporter.suite_started(suite)
        try:
            for step in self._plan(suite):
                started = time.perf_counter()
                try:
                    await step.action(ctx)
                except (AssertionError, BackendError) as e:
                    outcome.steps.append(
                        StepOutcome(step, False, time.perf_counter() - started, e)
                    )
                    outcome.failed_step = step.name
                    outcome.error = e
                    logger.warning(
                        "Suite %s failed at step %s: %s", suite.name, step.name, e
                    )
                    self.reporter.step_failed(suite, step, e)
                    break
                outcome.steps.append(
                    StepOutcome(step, True, time.perf_counter() - started)
                )
                logger.debug("Step %s.%s passed", suite.name, step.name)
                self.reporter.step_passed(suite, step)
            self.reporter.suite_finished(suite, outcome)
        finally:
            if done is not None:
                done()
        return outcome

    @staticmethod
    def _plan(suite: Suite) -> Iterable[Step]:
        yield from suite.setup_steps()
        yield from suite.steps
