"""
Preflight checks — run before any mutation.

Wrong OS and insufficient disk space are fatal (PreflightFailure).
No network is only a warning; steps that need it will fail on their own.
"""

from __future__ import annotations

import logging
import platform
import shutil
import socket
from pathlib import Path
from typing import Callable

from termsetup.core.context import RunContext
from termsetup.core.errors import NetworkWarning, PreflightFailure

logger = logging.getLogger(__name__)


def check_os(required: str, system: Callable[[], str] = platform.system) -> None:
    """Raise PreflightFailure unless ``platform.system()`` equals ``required``."""
    if not required:
        return
    actual = system()
    if actual != required:
        raise PreflightFailure(
            f"This setup is designed for {required} only (running on {actual})!"
        )


def check_disk_space(
    path: Path,
    min_free_mb: int,
    disk_usage: Callable[[Path], object] = shutil.disk_usage,
) -> int:
    """Raise PreflightFailure when less than ``min_free_mb`` is free.

    Returns:
        Free space in MB.
    """
    probe = path if path.exists() else path.parent
    free_mb = int(disk_usage(probe).free // (1024 * 1024))
    if free_mb < min_free_mb:
        raise PreflightFailure(
            f"Insufficient disk space. Need at least {min_free_mb}MB free "
            f"(have {free_mb}MB)."
        )
    return free_mb


def check_network(host: str, timeout: int = 10, port: int = 443) -> None:
    """Raise NetworkWarning when ``host:port`` cannot be reached."""
    if not host:
        return
    try:
        with socket.create_connection((host, port), timeout=timeout):
            pass
    except OSError as e:
        raise NetworkWarning(f"Cannot reach {host}: {e}") from e


def run_preflight(
    ctx: RunContext,
    *,
    system: Callable[[], str] = platform.system,
    disk_usage: Callable[[Path], object] = shutil.disk_usage,
    network_check: Callable[[str, int], None] | None = None,
) -> None:
    """Run every preflight check.

    Raises:
        PreflightFailure: On wrong OS or insufficient disk space.
    """
    cfg = ctx.config
    ctx.report.info("Running pre-flight checks...")

    check_os(cfg.required_os, system=system)
    free_mb = check_disk_space(ctx.home, cfg.min_free_mb, disk_usage=disk_usage)
    ctx.report.debug(f"Free disk space: {free_mb}MB")

    probe = network_check or check_network
    try:
        probe(cfg.network_probe_host, cfg.connect_timeout)
    except NetworkWarning as e:
        ctx.report.warning(f"No network connectivity detected. Some features may not work. ({e})")

    ctx.report.success("Pre-flight checks completed")
