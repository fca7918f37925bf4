"""Logging setup for the VESTA command line.

Two handlers hang off the root logger:

- a Rich console handler on stderr, filtered at the ``-v``/``-q`` level;
  records from other libraries are tagged ``[package]``;
- an optional *flight recorder*: a `MemoryHandler` keeping the most recent
  records at DEBUG granularity and dumping them to a file once a WARNING
  arrives (or at exit when force-flushed). A failed conformance run thus
  leaves a full trace of the store operations that led to it.

`configure_logging` installs both and returns a `LoggingSetup` that
`log_startup` summarizes.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from dataclasses import dataclass, field
from logging.handlers import MemoryHandler
from pathlib import Path
from typing import Literal, TypeAlias

import aiosqlite
import sqlalchemy
from rich.console import Console
from rich.logging import RichHandler

# pylint: disable=too-few-public-methods

PROJECT_PREFIX = "vesta"
FLIGHT_RECORDER_CAPACITY = 2000
FLIGHT_RECORDER_FORMAT = (
    "[%(asctime)s] [%(process)d:%(threadName)s] "
    "%(levelname)s %(name)s:%(lineno)d: %(message)s"
)

# click-extra's --color / --no-color map onto these
ColorSystem: TypeAlias = Literal["auto", "standard", "256", "truecolor", "windows"]


class ThirdPartyPrefixFilter(logging.Filter):
    """Tag records from other top-level packages with ``[package]``.

    Sets `record.prefix`; VESTA's own records get an empty prefix. Never drops
    a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        package = record.name.partition(".")[0]
        record.prefix = "" if package == PROJECT_PREFIX else f"[{package}]"
        return True


@dataclass(frozen=True, slots=True)
class LoggingSetup:
    """What `configure_logging` installed.

    Attributes:
        level: Console threshold.
        handlers: Handlers attached to the root logger, console first.
        log_path: Flight recorder file, or None when the recorder is off.
        flight_capacity: Records the flight recorder buffers.
        force_flush: Whether the recorder also dumps its buffer on close.
        logger_levels: Per-logger thresholds that were applied.
    """

    level: int
    handlers: list[logging.Handler]
    log_path: Path | None = None
    flight_capacity: int = FLIGHT_RECORDER_CAPACITY
    force_flush: bool = False
    logger_levels: dict[str, int] = field(default_factory=dict)

    @property
    def flight_recorder(self) -> bool:
        return self.log_path is not None


def config_console_handler(
    level: int = logging.INFO, debug_mode: bool = False, color: bool = True
) -> RichHandler:
    """Build the stderr console handler.

    Args:
        level: Console threshold; debug mode forces DEBUG.
        debug_mode: Show source paths and timestamps instead of prefixes.
        color: Allow colored output.
    """
    color_system: ColorSystem | None = "auto" if color else None
    handler = RichHandler(
        level=logging.DEBUG if debug_mode else level,
        console=Console(color_system=color_system, stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=debug_mode,
        enable_link_path=debug_mode,
    )
    if debug_mode:
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s: %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(prefix)s %(message)s"))
        handler.addFilter(ThirdPartyPrefixFilter())
    return handler


def config_flight_recorder(
    path: Path,
    capacity: int = FLIGHT_RECORDER_CAPACITY,
    flush_level: int = logging.WARNING,
    flush_on_close: bool = False,
) -> MemoryHandler:
    """Build the flight recorder writing to *path*.

    The file is truncated when the recorder is built, so it only ever holds
    the records of the latest run.

    Args:
        path: Destination file.
        capacity: Records kept in memory between flushes.
        flush_level: Records at or above this level trigger a flush.
        flush_on_close: Also flush whatever is buffered on close.
    """
    target = logging.FileHandler(path, mode="w", encoding="utf-8")
    target.setLevel(logging.DEBUG)
    target.setFormatter(logging.Formatter(FLIGHT_RECORDER_FORMAT))
    return MemoryHandler(
        capacity=capacity,
        flushLevel=flush_level,
        target=target,
        flushOnClose=flush_on_close,
    )


def effective_level(verbose_count: int, quiet_count: int) -> int:
    """Console level from ``-v``/``-q`` counts, starting at WARNING."""
    level = logging.WARNING - (10 * verbose_count) + (10 * quiet_count)
    return max(logging.DEBUG, min(logging.CRITICAL, level))


def configure_logging(  # pylint: disable=too-many-arguments
    *,
    level: int,
    debug_mode: bool = False,
    color: bool = True,
    log_path: Path | None = None,
    flight_capacity: int = FLIGHT_RECORDER_CAPACITY,
    force_flush: bool = False,
    logger_levels: dict[str, int] | None = None,
) -> LoggingSetup:
    """Install the console handler and the flight recorder on the root logger.

    The root logger passes every record; each handler applies its own
    threshold. *logger_levels* set the named loggers' own levels, so they
    silence a library for the console and the flight recorder alike.

    Args:
        level: Console threshold (see `effective_level`).
        debug_mode: Debug console formatting at DEBUG level.
        color: Allow colored console output.
        log_path: Flight recorder file; None disables the recorder.
        flight_capacity: Records buffered by the flight recorder.
        force_flush: Flush the flight recorder on close, not only on WARNING.
        logger_levels: Per-logger thresholds.
    """
    handlers: list[logging.Handler] = [
        config_console_handler(level=level, debug_mode=debug_mode, color=color)
    ]
    if log_path is not None:
        handlers.append(
            config_flight_recorder(
                log_path, capacity=flight_capacity, flush_on_close=force_flush
            )
        )
    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)

    levels = dict(logger_levels or {})
    for name, lvl in levels.items():
        logging.getLogger(name).setLevel(lvl)
    return LoggingSetup(
        level=level,
        handlers=handlers,
        log_path=log_path,
        flight_capacity=flight_capacity,
        force_flush=force_flush,
        logger_levels=levels,
    )


def log_startup(logger: logging.Logger, setup: LoggingSetup, app_version: str) -> None:
    """Log a one-line INFO summary, then DEBUG diagnostics.

    The diagnostics (interpreter, platform, database library versions, handler
    and flight recorder settings) mostly end up in the flight recorder, where
    they give context to a failed run.
    """
    logger.info(
        "VESTA %s: console=%s, flight-recorder=%s",
        app_version,
        logging.getLevelName(setup.level),
        "ON" if setup.flight_recorder else "OFF",
    )
    logger.debug("Python: %s", sys.version.split()[0])
    logger.debug("Platform: %s %s", platform.system(), platform.release())
    logger.debug("PID: %s, CWD: %s", os.getpid(), Path.cwd())
    logger.debug(
        "SQLAlchemy: %s, aiosqlite: %s", sqlalchemy.__version__, aiosqlite.__version__
    )
    logger.debug("Handlers: %s", [type(h).__name__ for h in setup.handlers])
    if setup.flight_recorder:
        logger.debug(
            "Flight recorder: path=%s, capacity=%s, flush_on_close=%s",
            setup.log_path,
            setup.flight_capacity,
            setup.force_flush,
        )
    logger.debug(
        "Per-logger overrides: %s",
        {name: logging.getLevelName(lvl) for name, lvl in setup.logger_levels.items()}
        or "<none>",
    )
