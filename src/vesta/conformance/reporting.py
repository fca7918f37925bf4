"""Progress reporting for conformance runs.

`Reporter` is the silent base; `ConsoleReporter` prints one line per step,
the way the suites read when run by hand::

    [Setup] Clear foo [PASSED]
    [Data tests] Load non existing entity from store [PASSED]
    [Save tests] Save an entity with different type of properties [FAILED]
        AssertionViolation: field 'int': expected 11, got '11'

Lines are built as `rich.text.Text` rather than console markup so that
bracketed labels and entity renderings print verbatim.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.text import Text

if TYPE_CHECKING:
    from .runner import Step, Suite, SuiteOutcome
    from .shutdown import ShutdownReport


class Reporter:
    """Receives run events. Every hook is a no-op by default."""

    def suite_started(self, suite: Suite) -> None:
        pass

    def step_passed(self, suite: Suite, step: Step) -> None:
        pass

    def step_failed(self, suite: Suite, step: Step, error: BaseException) -> None:
        pass

    def suite_finished(self, suite: Suite, outcome: SuiteOutcome) -> None:
        pass

    def shutdown_finished(self, report: ShutdownReport) -> None:
        pass


class ConsoleReporter(Reporter):
    """Prints run events to a rich console (stderr by default)."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def suite_started(self, suite: Suite) -> None:
        self.console.print(Text(suite.title, style="bold"))

    def step_passed(self, suite: Suite, step: Step) -> None:
        self.console.print(
            Text.assemble(
                (step.category, "yellow"),
                " ",
                step.description,
                " ",
                ("[PASSED]", "green"),
            )
        )

    def step_failed(self, suite: Suite, step: Step, error: BaseException) -> None:
        self.console.print(
            Text.assemble(
                (step.category, "yellow"),
                " ",
                step.description,
                " ",
                ("[FAILED]", "bold red"),
            )
        )
        self.console.print(Text(f"    {type(error).__name__}: {error}", style="red"))

    def suite_finished(self, suite: Suite, outcome: SuiteOutcome) -> None:
        if outcome.passed:
            line = Text(f"{suite.title}: all {len(outcome.steps)} steps passed", "green")
        else:
            line = Text(
                f"{suite.title}: failed at step {outcome.failed_step!r}", "bold red"
            )
        self.console.print(line)

    def shutdown_finished(self, report: ShutdownReport) -> None:
        if report.confirmed:
            status = (f"all {report.expected} suite(s) completed", "green")
        else:
            status = (
                f"{report.completed}/{report.expected} suite(s) completed"
                f" after {report.attempts} poll(s); closed anyway",
                "yellow",
            )
        self.console.print(
            Text.assemble(("[Close test]", "yellow"), " Store closed: ", status)
        )
        if not report.closed:
            self.console.print(
                Text.assemble(
                    ("[Close test]", "yellow"), " ", ("close() raised; see log", "red")
                )
            )
