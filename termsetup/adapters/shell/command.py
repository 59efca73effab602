"""
Subprocess runner — the single place where ``subprocess.run`` is called.

All external tools (brew, curl, git, installer scripts) go through
``run_command``.  It never raises: failures come back as
``{"ok": False, "error": ...}`` dicts, like every adapter result.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)

Runner = Callable[..., dict[str, Any]]


def run_command(
    cmd: list[str],
    *,
    timeout: int = 600,
    env_overrides: dict[str, str] | None = None,
    cwd: str | None = None,
) -> dict[str, Any]:
    """Run a command and capture its output.

    Args:
        cmd: Command list for ``subprocess.run()``.
        timeout: Seconds before ``TimeoutExpired``.
        env_overrides: Extra env vars layered over ``os.environ``.
        cwd: Working directory for the command.

    Returns:
        ``{"ok": True, "stdout": "...", "returncode": 0, "elapsed_ms": N}``
        on success, ``{"ok": False, "error": "...", "returncode": N, ...}``
        on failure.
    """
    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    logger.debug("Executing: %s (cwd=%s)", " ".join(cmd), cwd)
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired:
        return {"ok": False, "returncode": 124, "error": f"Command timed out ({timeout}s)"}
    except FileNotFoundError:
        return {"ok": False, "returncode": 127, "error": f"Command not found: {cmd[0]}"}
    except OSError as e:
        logger.exception("Subprocess error: %s", cmd)
        return {"ok": False, "returncode": 126, "error": str(e)}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = result.stdout[-2000:] if result.stdout else ""
    stderr = result.stderr[-2000:] if result.stderr else ""

    if result.returncode == 0:
        return {
            "ok": True,
            "returncode": 0,
            "stdout": stdout,
            "stderr": stderr,
            "elapsed_ms": elapsed_ms,
        }

    return {
        "ok": False,
        "returncode": result.returncode,
        "error": f"Command failed (exit {result.returncode})",
        "stdout": stdout,
        "stderr": stderr,
        "elapsed_ms": elapsed_ms,
    }
