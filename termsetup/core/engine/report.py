"""
Installation Report — append-only forensic trail of a run.

Every message has a level and free text.  INFO, SUCCESS, WARNING and
ERROR are echoed to the terminal and appended to the installation log;
DEBUG is appended to the log only.  Line order is the only ordering,
each line carrying its own timestamp:

    2026-10-19 14:02:11 [SUCCESS] kitty installed successfully
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable

import click

from termsetup.core.observability.logging_config import SUCCESS

logger = logging.getLogger(__name__)

# level → (prefix, colour)
_CONSOLE_STYLE: dict[int, tuple[str, str]] = {
    logging.INFO: ("[INFO]", "blue"),
    SUCCESS: ("[SUCCESS]", "green"),
    logging.WARNING: ("[WARNING]", "yellow"),
    logging.ERROR: ("[ERROR]", "red"),
}

Echo = Callable[[str], None]


def _console_echo(line: str) -> None:
    click.echo(line)


class InstallationReport:
    """Leveled, append-only sink backed by a flat log file.

    Args:
        path: Installation log file. Created (with parents) on first write.
        echo: Terminal writer, defaults to ``click.echo``.
        color: Whether to style the level prefix on the terminal.
    """

    def __init__(self, path: Path, echo: Echo | None = None, color: bool = True):
        self._path = path
        self._echo = echo or _console_echo
        self._color = color

    @property
    def path(self) -> Path:
        return self._path

    # ── Levels ──────────────────────────────────────────────────

    def info(self, message: str) -> None:
        self._emit(logging.INFO, message)

    def success(self, message: str) -> None:
        self._emit(SUCCESS, message)

    def warning(self, message: str) -> None:
        self._emit(logging.WARNING, message)

    def error(self, message: str) -> None:
        self._emit(logging.ERROR, message)

    def debug(self, message: str) -> None:
        self._emit(logging.DEBUG, message)

    # ── Internals ───────────────────────────────────────────────

    def _emit(self, level: int, message: str) -> None:
        self._append(level, message)
        logger.debug("report %s: %s", logging.getLevelName(level), message)

        style = _CONSOLE_STYLE.get(level)
        if style is None:
            return
        prefix, colour = style
        if self._color:
            prefix = click.style(prefix, fg=colour)
        self._echo(f"{prefix} {message}")

    def _append(self, level: int, message: str) -> None:
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        line = f"{stamp} [{logging.getLevelName(level)}] {message}\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            logger.error("Failed to write installation log %s: %s", self._path, e)


def tail_log(path: Path, n: int = 50) -> list[str]:
    """Return the last ``n`` lines of an installation log (empty if absent)."""
    if not path.is_file():
        return []
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        logger.error("Failed to read installation log %s: %s", path, e)
        return []
    return lines[-n:] if n > 0 else lines
