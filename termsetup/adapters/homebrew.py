"""
Homebrew adapter — install, list, update and uninstall packages.

Formulae and casks differ only by the ``--cask`` flag.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any, Callable

from termsetup.adapters.shell.command import Runner, run_command
from termsetup.core.models.ledger import PackageKind

logger = logging.getLogger(__name__)

# Apple Silicon first, then Intel
BREW_LOCATIONS = (Path("/opt/homebrew/bin/brew"), Path("/usr/local/bin/brew"))


def _kind_flags(kind: PackageKind) -> list[str]:
    return ["--cask"] if kind == PackageKind.CASK else []


class Homebrew:
    """Thin wrapper over the ``brew`` CLI.

    Args:
        runner: Subprocess runner (``run_command`` signature).
        which: ``shutil.which`` replacement used to find ``brew``.
        locations: Fallback install locations checked after PATH.
    """

    def __init__(
        self,
        runner: Runner = run_command,
        which: Callable[[str], str | None] = shutil.which,
        locations: tuple[Path, ...] = BREW_LOCATIONS,
    ):
        self._run = runner
        self._which = which
        self._locations = locations

    def executable(self) -> str | None:
        """Path to ``brew``, or None when Homebrew is not installed."""
        found = self._which("brew")
        if found:
            return found
        for loc in self._locations:
            if loc.is_file():
                return str(loc)
        return None

    def available(self) -> bool:
        return self.executable() is not None

    def installed_prefix_binary(self) -> Path | None:
        """The well-known brew binary to reference from ``.zprofile``."""
        for loc in self._locations:
            if loc.is_file():
                return loc
        return None

    def is_installed(self, name: str, kind: PackageKind = PackageKind.FORMULA) -> bool:
        brew = self.executable()
        if brew is None:
            return False
        result = self._run([brew, "list", *_kind_flags(kind), name], timeout=60)
        return bool(result["ok"])

    def install(self, name: str, kind: PackageKind = PackageKind.FORMULA) -> dict[str, Any]:
        return self._brew("install", *_kind_flags(kind), name)

    def uninstall(self, name: str, kind: PackageKind = PackageKind.FORMULA) -> dict[str, Any]:
        return self._brew("uninstall", *_kind_flags(kind), name, timeout=300)

    def update(self) -> dict[str, Any]:
        return self._brew("update")

    def _brew(self, *args: str, timeout: int = 1800) -> dict[str, Any]:
        brew = self.executable()
        if brew is None:
            return {"ok": False, "returncode": 127, "error": "Homebrew is not installed"}
        logger.debug("brew %s", " ".join(args))
        return self._run([brew, *args], timeout=timeout)
