"""
Download and clone adapters — curl for installer scripts, git for plugins.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from termsetup.adapters.shell.command import Runner, run_command

logger = logging.getLogger(__name__)


def download(
    url: str,
    dest: Path,
    *,
    connect_timeout: int = 10,
    runner: Runner = run_command,
) -> dict[str, Any]:
    """Fetch ``url`` into ``dest`` with curl.

    A zero exit status without a file on disk is reported as a failure.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    result = runner(
        [
            "curl", "-fsSL",
            "--connect-timeout", str(connect_timeout),
            "-o", str(dest),
            url,
        ],
        timeout=300,
    )
    if result["ok"] and not dest.is_file():
        return {"ok": False, "returncode": 1, "error": f"Download produced no file: {url}"}
    if result["ok"]:
        logger.debug("Downloaded %s → %s", url, dest)
    return result


def git_clone(
    url: str,
    dest: Path,
    *,
    runner: Runner = run_command,
) -> dict[str, Any]:
    """Shallow-clone ``url`` into ``dest``."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    return runner(["git", "clone", "--depth", "1", url, str(dest)], timeout=300)
