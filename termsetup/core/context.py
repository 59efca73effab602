"""
Run context — everything a setup run owns, passed explicitly to every step.

The sequencer creates one RunContext per run and hands it to each step
in turn.  The backup ledger, the mutation log and the installed-package
list live here and nowhere else; steps record mutations through the
``track*`` helpers so that every mutation of a pre-existing path gets
exactly one backup taken before it, and every path created from
scratch gets exactly one ``created`` entry.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import click

from termsetup.adapters.homebrew import Homebrew
from termsetup.adapters.shell.command import Runner, run_command
from termsetup.core.engine.ledger import BackupLedger
from termsetup.core.engine.report import InstallationReport
from termsetup.core.errors import BackupIOFailure
from termsetup.core.models.ledger import (
    ConfigTarget,
    InstalledPackageRecord,
    MutationEntry,
    MutationKind,
    PackageKind,
)
from termsetup.core.models.setup_config import SetupConfig

logger = logging.getLogger(__name__)


def _default_confirm(prompt: str) -> bool:
    return click.confirm(prompt, default=False)


@dataclass
class RunContext:
    """State and collaborators of one setup run."""

    home: Path
    config: SetupConfig
    report: InstallationReport
    ledger: BackupLedger
    homebrew: Homebrew
    runner: Runner = run_command
    which: Callable[[str], str | None] = shutil.which
    sleep: Callable[[float], None] = time.sleep
    confirm: Callable[[str], bool] = _default_confirm

    mutation_log: list[MutationEntry] = field(default_factory=list)
    installed_packages: list[InstalledPackageRecord] = field(default_factory=list)

    _tracked: set[str] = field(default_factory=set, repr=False)
    _work_dir: Path | None = field(default=None, repr=False)

    @classmethod
    def create(
        cls,
        home: Path,
        config: SetupConfig | None = None,
        *,
        runner: Runner = run_command,
        which: Callable[[str], str | None] = shutil.which,
        report: InstallationReport | None = None,
        **kwargs,
    ) -> RunContext:
        """Build a context with a fresh ledger, report and Homebrew adapter."""
        config = config or SetupConfig()
        return cls(
            home=home,
            config=config,
            report=report or InstallationReport(home / config.log_file),
            ledger=BackupLedger(home, prefix=config.backup_prefix),
            homebrew=Homebrew(runner=runner, which=which),
            runner=runner,
            which=which,
            **kwargs,
        )

    # ── Paths ───────────────────────────────────────────────────

    def path(self, target: ConfigTarget) -> Path:
        return target.path_in(self.home)

    @property
    def log_file(self) -> Path:
        return self.report.path

    @property
    def backup_dir(self) -> Path:
        return self.ledger.planned_directory

    def work_dir(self) -> Path:
        """Temporary directory for downloaded installers (created lazily)."""
        if self._work_dir is None:
            self._work_dir = Path(tempfile.mkdtemp(prefix="fastfetch-setup-"))
            self.report.debug(f"Created temporary directory: {self._work_dir}")
        return self._work_dir

    def cleanup(self) -> None:
        """Remove the temporary directory, if any."""
        if self._work_dir is not None and self._work_dir.exists():
            shutil.rmtree(self._work_dir, ignore_errors=True)
            self.report.debug(f"Cleaned up temporary directory: {self._work_dir}")
        self._work_dir = None

    # ── Mutation tracking ───────────────────────────────────────

    def track(self, target: ConfigTarget) -> None:
        """Record ``target`` before it is mutated."""
        self.track_path(self.path(target), label=target.label)

    def track_path(self, path: Path, label: str | None = None) -> None:
        """Record an arbitrary path before it is mutated.

        Pre-existing paths are backed up under ``label`` (paths without a
        label are left alone).  Missing paths get a ``created`` entry.
        A path already tracked during this run is ignored.
        """
        key = str(path)
        if key in self._tracked:
            return
        self._tracked.add(key)

        if not path.exists() and not path.is_symlink():
            self.record_created(path)
            return

        if label is None:
            return

        try:
            backed_up = self.ledger.backup(path, label)
        except BackupIOFailure as e:
            self.report.warning(f"Backup failed, continuing without it: {e}")
            # kept so rollback reports the path it cannot restore
            self.mutation_log.append(
                MutationEntry(kind=MutationKind.MODIFIED, identifier=label, path=key)
            )
            return

        if backed_up:
            self.mutation_log.append(
                MutationEntry(kind=MutationKind.MODIFIED, identifier=label, path=key)
            )
            self.report.debug(f"Backed up {path} as {label}")

    def record_created(self, path: Path) -> None:
        key = str(path)
        self._tracked.add(key)
        if any(e.is_created and e.path == key for e in self.mutation_log):
            return
        self.mutation_log.append(
            MutationEntry(kind=MutationKind.CREATED, identifier=key, path=key)
        )
        self.report.debug(f"Created: {path}")

    def ensure_dir(self, path: Path) -> None:
        """mkdir -p, recording every directory it creates (outermost first)."""
        missing: list[Path] = []
        current = path
        while not current.exists() and current != current.parent:
            missing.append(current)
            current = current.parent

        for directory in reversed(missing):
            if not self._is_inside_created(directory):
                self.record_created(directory)
        path.mkdir(parents=True, exist_ok=True)

    def record_package(self, name: str, kind: PackageKind) -> None:
        self.installed_packages.append(
            InstalledPackageRecord(package_name=name, package_kind=kind)
        )

    def _is_inside_created(self, path: Path) -> bool:
        for entry in self.mutation_log:
            if entry.is_created and path.is_relative_to(entry.path) and str(path) != entry.path:
                return True
        return False
