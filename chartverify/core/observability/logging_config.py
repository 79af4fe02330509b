"""
Logging configuration — central setup for the CLI and the BDD suite.

Called once at startup. Every module that does
``logger = logging.getLogger(__name__)`` inherits this config.

Levels are resolved in precedence order:
    CLI flag  >  CHARTVERIFY_LOG_LEVEL env var  >  WARNING (default)

Optional file output via CHARTVERIFY_LOG_FILE / CHARTVERIFY_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

LOG_LEVEL_ENV = "CHARTVERIFY_LOG_LEVEL"
LOG_FILE_ENV = "CHARTVERIFY_LOG_FILE"
LOG_FILE_LEVEL_ENV = "CHARTVERIFY_LOG_FILE_LEVEL"


# (threshold, format, datefmt): the first threshold >= level applies.
# Above INFO the message alone is enough; INFO adds time and logger,
# DEBUG adds the level and the source line of every command.
_CONSOLE_FORMATS = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "%(message)s", None),
)

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    environ = os.environ if environ is None else environ
    return environ.get(LOG_LEVEL_ENV, "WARNING")


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = next(
        (fmt, datefmt) for threshold, fmt, datefmt in _CONSOLE_FORMATS if level <= threshold
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root handlers with a stderr console and an optional file.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file, appended to.
        log_file_level: Level for the file; defaults to ``level``. A
            file at DEBUG keeps every kind/kubectl/helm command line even
            when the console is quiet.
    """
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level)]

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))

    root = logging.getLogger()
    root.handlers[:] = handlers
    root.setLevel(min(h.level for h in handlers))


def setup_from_environment(level: str | None = None, environ: Mapping[str, str] | None = None) -> None:
    """``setup_logging`` with file settings taken from the environment."""
    environ = os.environ if environ is None else environ
    setup_logging(
        level=level or environ.get(LOG_LEVEL_ENV, "WARNING"),
        log_file=environ.get(LOG_FILE_ENV),
        log_file_level=environ.get(LOG_FILE_LEVEL_ENV),
    )


def _parse_level(level: str | None) -> int:
    """Level name → numeric constant; unknown names fall back to WARNING."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
