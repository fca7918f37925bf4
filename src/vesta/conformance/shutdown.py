"""Bounded-retry shutdown of the backend under test.

Suites may run concurrently and finish in any order. Each run increments a
shared `CompletionCounter` exactly once when it ends; the
`ShutdownCoordinator` polls that counter and closes the store once every
expected run reported, or once it has waited ``retry_limit + 1`` intervals,
whichever comes first. The store is closed exactly once either way.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from vesta.interfaces.entity_store import BackendError

from .reporting import Reporter

if TYPE_CHECKING:
    from vesta.interfaces.entity_store import EntityStore

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.5
RETRY_LIMIT = 10


class CompletionCounter:
    """Counts finished suite runs. Only ever incremented."""

    __slots__ = ("_count",)

    def __init__(self) -> None:
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    def increment(self) -> None:
        self._count += 1


@dataclass(frozen=True, slots=True)
class ShutdownReport:
    """How the store came to be closed.

    Attributes:
        confirmed: True if every expected run completed before closing.
        attempts: Number of poll intervals waited.
        completed: Runs counted when the store was closed.
        expected: Runs that were expected.
        closed: False if the backend raised while closing.
    """

    confirmed: bool
    attempts: int
    completed: int
    expected: int
    closed: bool = True


class ShutdownCoordinator:
    """Closes a store once the expected number of runs completed.

    Args:
        store: The backend to close.
        expected: Number of runs to wait for.
        counter: Counter the runs increment.
        interval: Seconds between polls.
        retry_limit: Extra polls allowed after the first before closing anyway.
        reporter: Receives the final `ShutdownReport`.
        sleep: Awaitable sleep, replaceable in tests.
    """

    def __init__(
        self,
        store: EntityStore,
        expected: int,
        counter: CompletionCounter,
        *,
        interval: float = POLL_INTERVAL,
        retry_limit: int = RETRY_LIMIT,
        reporter: Reporter | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if expected < 0:
            raise ValueError(f"expected must be >= 0, got {expected}")
        if retry_limit < 0:
            raise ValueError(f"retry_limit must be >= 0, got {retry_limit}")
        self.store = store
        self.expected = expected
        self.counter = counter
        self.interval = interval
        self.retry_limit = retry_limit
        self.reporter = reporter or Reporter()
        self._sleep = sleep

    async def wait_and_close(self) -> ShutdownReport:
        """Wait for the expected runs (bounded), then close the store.

        Returns:
            The shutdown report. Running out of retries is not an error; it is
            logged as a warning and reflected in `ShutdownReport.confirmed`.
            A `BackendError` from ``close()`` is logged and reflected in
            `ShutdownReport.closed`.
        """
        attempts = 0
        while self.counter.count < self.expected and attempts <= self.retry_limit:
            attempts += 1
            await self._sleep(self.interval)

        completed = self.counter.count
        confirmed = completed >= self.expected
        if not confirmed:
            logger.warning(
                "Closing store after %d poll(s) with %d/%d suite run(s) completed",
                attempts,
                completed,
                self.expected,
            )
        closed = True
        try:
            await self.store.close()
        except BackendError:
            closed = False
            logger.exception("Closing %s failed", type(self.store).__name__)
        else:
            logger.info(
                "Store closed (%d/%d runs completed)", completed, self.expected
            )

        report = ShutdownReport(confirmed, attempts, completed, self.expected, closed)
        self.reporter.shutdown_finished(report)
        return report
