"""
File helpers for setup steps — write, compare, append marker blocks.

Writes are idempotent: a file that already holds the wanted content
is left untouched, and a marker block already present in a file is
never appended again.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from termsetup.core.context import RunContext

logger = logging.getLogger(__name__)


def has_content(path: Path, content: str) -> bool:
    """Whether ``path`` is a file holding exactly ``content``."""
    if not path.is_file():
        return False
    try:
        return path.read_text(encoding="utf-8") == content
    except (OSError, UnicodeDecodeError):
        return False


def contains(path: Path, needle: str) -> bool:
    """grep -q: whether ``path`` is a file containing ``needle``."""
    if not path.is_file():
        return False
    try:
        return needle in path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False


def is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def write_file(
    ctx: RunContext,
    path: Path,
    content: str,
    *,
    mode: int | None = None,
) -> bool:
    """Write ``content`` to ``path`` unless it is already there.

    Missing parent directories are created and recorded.  The caller
    must have tracked ``path`` (or an ancestor) before calling.

    Returns:
        True if the file was written, False if it was already up to date.
    """
    if has_content(path, content):
        if mode is not None:
            _chmod(path, mode)
        ctx.report.debug(f"Up to date: {path}")
        return False

    ctx.ensure_dir(path.parent)
    path.write_text(content, encoding="utf-8")
    if mode is not None:
        _chmod(path, mode)
    ctx.report.debug(f"Wrote {path} ({len(content)} bytes)")
    return True


def append_block(ctx: RunContext, path: Path, marker: str, block: str) -> bool:
    """Append ``block`` to ``path`` unless ``marker`` is already present.

    Returns:
        True if appended, False if the marker was found.
    """
    if contains(path, marker):
        return False

    ctx.ensure_dir(path.parent)
    existing = ""
    if path.is_file():
        existing = path.read_text(encoding="utf-8", errors="replace")

    with path.open("a", encoding="utf-8") as f:
        if existing and not existing.endswith("\n"):
            f.write("\n")
        f.write(block)
        if not block.endswith("\n"):
            f.write("\n")
    return True


def _chmod(path: Path, mode: int) -> None:
    current = stat.S_IMODE(path.stat().st_mode)
    if current != mode:
        path.chmod(mode)
