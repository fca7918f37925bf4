"""Conformance harness for `EntityStore` backends.

Runs ordered suites of asynchronous steps against a backend-under-test,
threading a `FixtureState` between steps, aborting a suite at its first
failure, and finally closing the backend through the `ShutdownCoordinator`.

Typical usage::

    from vesta.conformance import run_conformance

    result = await run_conformance(store, SuiteSettings(must_merge=False))
    assert result.passed
"""

from .errors import AssertionViolation, MissingFixtureError
from .fixture_state import FixtureState
from .harness import ConformanceResult, run_conformance
from .reporting import ConsoleReporter, Reporter
from .runner import Step, StepContext, StepOutcome, Suite, SuiteOutcome, SuiteRunner
from .settings import SuiteSettings
from .shutdown import CompletionCounter, ShutdownCoordinator, ShutdownReport
from .suites import SUITES, default_suites, get_suite

__all__ = [
    "AssertionViolation",
    "CompletionCounter",
    "ConformanceResult",
    "ConsoleReporter",
    "FixtureState",
    "MissingFixtureError",
    "Reporter",
    "SUITES",
    "ShutdownCoordinator",
    "ShutdownReport",
    "Step",
    "StepContext",
    "StepOutcome",
    "Suite",
    "SuiteOutcome",
    "SuiteRunner",
    "SuiteSettings",
    "default_suites",
    "get_suite",
    "run_conformance",
]
