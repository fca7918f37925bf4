"""``vesta check``: run the conformance suites against a reference backend.

Exit status
- 0 when every selected suite passed and completed before shutdown.
- 1 when a suite failed or was still running when the store was closed.
- 2 for usage errors (unknown suite, URL given for the memory backend...).
"""

from __future__ import annotations

import asyncio
import logging

import click
import click_extra as clickx
from sqlalchemy.exc import ArgumentError

from vesta.bootstrap import BACKENDS, ID_GENERATORS, build_store
from vesta.conformance import (
    SUITES,
    ConsoleReporter,
    SuiteSettings,
    default_suites,
    get_suite,
    run_conformance,
)
from vesta.config import DB_URL_ENV_VAR
from vesta.conformance.harness import check_disjoint
from vesta.conformance.shutdown import POLL_INTERVAL, RETRY_LIMIT

from .helpers import describe_target, error, success, warn

logger = logging.getLogger(__name__)


@click.command(cls=clickx.ExtraCommand)
@click.option(
    "--backend",
    "-b",
    type=click.Choice(sorted(BACKENDS), case_sensitive=False),
    default="memory",
    show_default=True,
    help="Reference backend to check.",
)
@click.option(
    "--db-url",
    envvar=DB_URL_ENV_VAR,
    show_envvar=True,
    default=None,
    help="Database URL for the sqlite backend (in-memory SQLite if unset).",
)
@click.option(
    "--id-generator",
    type=click.Choice(list(ID_GENERATORS)),
    default="uuid4",
    show_default=True,
    help="Identity source for records created without id$.",
)
@click.option(
    "--merge/--no-merge",
    default=False,
    show_default=True,
    help="Build the store with merge-on-save and expect merge semantics.",
)
@click.option(
    "--suite",
    "-s",
    "suite_names",
    multiple=True,
    type=click.Choice(sorted(SUITES)),
    help="Suite to run (repeatable). Defaults to every suite the backend supports.",
)
@click.option(
    "--concurrent/--sequential",
    default=False,
    show_default=True,
    help="Run suites in parallel tasks (suites must not share namespaces).",
)
@click.option(
    "--poll-interval",
    type=click.FloatRange(min=0, min_open=True),
    default=POLL_INTERVAL,
    show_default=True,
    help="Seconds between shutdown polls.",
)
@click.option(
    "--retry-limit",
    type=click.IntRange(min=0),
    default=RETRY_LIMIT,
    show_default=True,
    help="Extra shutdown polls before the store is closed regardless.",
)
def check(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    backend: str,
    db_url: str | None,
    id_generator: str,
    merge: bool,
    suite_names: tuple[str, ...],
    concurrent: bool,
    poll_interval: float,
    retry_limit: int,
) -> None:
    """Run the conformance suites against a reference backend."""
    backend = backend.lower()
    if backend == "memory":
        # VESTA_DB_URL only concerns SQL backends
        db_url = None
    try:
        store = build_store(backend, db_url, merge=merge, id_generator=id_generator)
    except ArgumentError as e:
        raise click.BadParameter(str(e), param_hint="--db-url") from e
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    suites = [get_suite(name) for name in suite_names] or default_suites(store)
    target = describe_target(backend, db_url)
    logger.info("Checking %s with suites: %s", target, [s.name for s in suites])

    skipped = [
        s.name
        for s in suites
        if s.requires_raw_queries and not store.supports_raw_queries
    ]
    if skipped:
        warn(f"{backend} does not support raw queries; skipping {', '.join(skipped)}")
        suites = [s for s in suites if s.name not in skipped]

    if concurrent:
        try:
            check_disjoint(suites)
        except ValueError as e:
            raise click.UsageError(str(e)) from e

    result = asyncio.run(
        run_conformance(
            store,
            SuiteSettings(must_merge=merge),
            suites,
            reporter=ConsoleReporter(),
            concurrent=concurrent,
            interval=poll_interval,
            retry_limit=retry_limit,
        )
    )

    if result.passed:
        success(f"{target}: all {len(result.outcomes)} suite(s) passed.")
        return
    for outcome in result.failures:
        error(
            f"{target}: suite {outcome.suite!r} failed at step {outcome.failed_step!r}."
        )
    if result.incomplete:
        warn(
            f"{target}: suite(s) still running at shutdown: {', '.join(result.incomplete)}"
        )
    raise SystemExit(1)
