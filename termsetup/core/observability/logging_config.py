"""
Logging configuration — process-wide setup done once by the CLI.

This is the diagnostic channel (``logger = logging.getLogger(__name__)``
in every module).  What the user is told about the setup itself goes
through the Installation Report, which writes its own log file.

Level precedence:
    --debug  >  --verbose  >  --quiet  >  TERMSETUP_LOG_LEVEL  >  WARNING

An extra diagnostic file can be requested with TERMSETUP_DEBUG_LOG
(and its own level with TERMSETUP_DEBUG_LOG_LEVEL).
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

LOG_LEVEL_ENV = "TERMSETUP_LOG_LEVEL"
DEBUG_LOG_ENV = "TERMSETUP_DEBUG_LOG"
DEBUG_LOG_LEVEL_ENV = "TERMSETUP_DEBUG_LOG_LEVEL"

# Level used by InstallationReport.success(); sits between INFO and WARNING
SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

# Console format per verbosity: (threshold, format, datefmt)
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "%(levelname)s: %(message)s", None),
)

_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d  %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Libraries whose INFO/DEBUG chatter is hidden unless --debug
_NOISY_LOGGERS = ("asyncio",)


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
) -> str:
    """Pick the console level name from CLI flags and the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(LOG_LEVEL_ENV, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name.
        log_file: Optional diagnostic log file (parents are created).
        log_file_level: Level for ``log_file``; defaults to ``level``.
        quiet_third_party: Keep library loggers at WARNING unless the
            console level is DEBUG.
    """
    console_level = _parse_level(level)
    fmt, datefmt = next(
        (f, d) for threshold, f, d in _CONSOLE_FORMATS if console_level <= threshold
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level or level)
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(file_handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    # no tracebacks from logging itself
    logging.raiseExceptions = False


def _parse_level(name: str | None) -> int:
    """Level name → number; unknown names fall back to WARNING."""
    if not name:
        return logging.WARNING
    value = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else logging.WARNING
