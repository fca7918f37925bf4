"""VESTA CLI entry point.

The top-level ``vesta`` group (Click-Extra) owns the logging options; every
subcommand runs with the console handler and flight recorder configured here.

Commands
- ``vesta check``: run the conformance suites against a reference backend.

Examples
    $ vesta --version
    $ vesta -v check --backend sqlite --db-url sqlite+aiosqlite:///store.db
    $ vesta --force-flush --log-path run.log check --merge -s basic
"""

import logging
from pathlib import Path

import click
import click_extra as clickx
from platformdirs import user_log_dir

from vesta import __version__
from vesta.logging import (
    FLIGHT_RECORDER_CAPACITY,
    configure_logging,
    effective_level,
    log_startup,
)

from .check import check as check_command
from .helpers.log_level_parser import parse_log_level

logger = logging.getLogger(__name__)

DEFAULT_LOG_PATH = (
    Path(user_log_dir("vesta", appauthor=False, ensure_exists=True)) / "latest.log"
)

HELP = """VESTA command-line interface.

    VESTA checks entity-storage backends against a shared behavioral contract:
    loading, saving, listing and removing entities, sorting and paging, merge
    policy and raw queries. Suites report each step and stop at the first
    contract violation.
    """


@clickx.extra_group(
    version=__version__,
    help=HELP,
    params=[
        clickx.ColorOption(show_envvar=True),
        clickx.TimerOption(show_envvar=True),
        clickx.ExtraVersionOption(),
    ],
)
@click.option(
    "--verbose",
    "-v",
    "verbose_count",
    count=True,
    default=0,
    help="Show one more level than WARNING on the console per repetition (-vv: DEBUG).",
)
@click.option(
    "--quiet",
    "-q",
    "quiet_count",
    count=True,
    default=0,
    help="Show one level less than WARNING on the console per repetition.",
)
@click.option(
    "--debug/--no-debug",
    default=False,
    help="Console records at DEBUG with timestamps and source locations.",
)
@click.option(
    "--log-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_LOG_PATH,
    envvar="VESTA_LOG_PATH",
    show_default=True,
    show_envvar=True,
    help="File the flight recorder writes to (truncated on every run).",
)
@click.option(
    "--flight-recorder-capacity",
    type=click.IntRange(min=1),
    default=FLIGHT_RECORDER_CAPACITY,
    hidden=True,
    envvar="VESTA_FLIGHT_RECORDER_CAPACITY",
    show_envvar=True,
    help="Records kept by the flight recorder between flushes.",
)
@click.option(
    "--flight-recorder/--no-flight-recorder",
    "flight_recorder",
    default=True,
    show_envvar=True,
    help=(
        "Buffer recent records at DEBUG in memory and dump them to --log-path "
        "once a WARNING is logged, e.g. when a suite fails. Does not change "
        "what the console shows."
    ),
)
@click.option(
    "--force-flush/--no-force-flush",
    "force_flush_flight_recorder",
    default=False,
    show_default=True,
    show_envvar=True,
    help="Also dump the flight recorder buffer at exit, even after a clean run.",
)
@click.option(
    "-L",
    "--logger-level",
    "logger_levels",
    multiple=True,
    callback=parse_log_level,
    default=("sqlalchemy=WARNING", "aiosqlite=WARNING"),
    show_default=True,
    show_envvar=True,
    help=(
        "Minimum level of one logger as NAME=LEVEL, for console and flight "
        "recorder alike. Repeatable, or a comma/space separated list in "
        "VESTA_LOGGER_LEVELS."
    ),
)
@clickx.pass_context
def vesta(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    ctx: click.Context,
    verbose_count: int,
    quiet_count: int,
    debug: bool,
    log_path: Path,
    flight_recorder_capacity: int,
    flight_recorder: bool,
    force_flush_flight_recorder: bool,
    logger_levels: dict[str, int],
) -> None:
    """VESTA command-line interface."""
    setup = configure_logging(
        level=effective_level(verbose_count, quiet_count),
        debug_mode=debug,
        # None means "auto"
        color=ctx.color is not False,
        log_path=log_path if flight_recorder else None,
        flight_capacity=flight_recorder_capacity,
        force_flush=force_flush_flight_recorder,
        logger_levels=logger_levels,
    )
    log_startup(logger, setup, __version__)
    ctx.call_on_close(logging.shutdown)


vesta.add_command(check_command)
