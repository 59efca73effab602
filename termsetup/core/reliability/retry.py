"""
Bounded retry for network-dependent installers.

Fixed attempt cap, fixed delay between attempts, no backoff and no
jitter.  Running out of attempts is a hard StepFailure.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from termsetup.core.engine.report import InstallationReport
from termsetup.core.errors import StepFailure

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 3
DEFAULT_DELAY_SECONDS = 5.0


def retry_command(
    label: str,
    operation: Callable[[], dict[str, Any]],
    report: InstallationReport,
    *,
    attempts: int = DEFAULT_ATTEMPTS,
    delay: float = DEFAULT_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> dict[str, Any]:
    """Call ``operation`` until it returns ``{"ok": True}``.

    Args:
        label: What is being attempted, for the report.
        operation: Zero-argument callable returning a runner result dict.
        report: Installation report.
        attempts: Maximum number of calls.
        delay: Seconds to wait between two attempts.
        sleep: ``time.sleep`` replacement.

    Returns:
        The successful result dict.

    Raises:
        StepFailure: After ``attempts`` failed calls, carrying the exit
            code of the last one.
    """
    last: dict[str, Any] = {}
    for attempt in range(1, attempts + 1):
        report.info(f"Installing {label} (attempt {attempt}/{attempts})...")
        last = operation()
        if last.get("ok"):
            return last

        report.warning(f"{label} installation attempt {attempt} failed")
        stderr = last.get("stderr") or last.get("error") or ""
        if stderr:
            report.debug(f"{label}: {stderr.strip()}")

        if attempt < attempts:
            report.info(f"Waiting {delay:g} seconds before retry...")
            sleep(delay)

    report.error(f"Failed to install {label} after {attempts} attempts")
    raise StepFailure(
        f"Failed to install {label} after {attempts} attempts",
        exit_code=int(last.get("returncode") or 1),
    )
