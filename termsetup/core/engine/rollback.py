"""
Rollback Engine — reverse the mutations a failed run applied.

The mutation log is replayed in the order entries were recorded:

    modified → restore the backup stored under the entry's label
    created  → delete the path (file, symlink or whole directory)

A created path that is already gone counts as success: deleting a
created directory implicitly removes its recorded children.

Rollback is best-effort.  A failing entry is reported and collected,
and the remaining entries still run.  Packages the run installed are
uninstalled afterwards, also best-effort.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from termsetup.core.engine.ledger import BackupLedger
from termsetup.core.engine.report import InstallationReport
from termsetup.core.errors import BackupIOFailure
from termsetup.core.models.ledger import (
    ConfigTarget,
    InstalledPackageRecord,
    MutationEntry,
    MutationKind,
)

if TYPE_CHECKING:
    from termsetup.adapters.homebrew import Homebrew

logger = logging.getLogger(__name__)


@dataclass
class RollbackOutcome:
    """What a rollback did."""

    restored: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    uninstalled: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def rollback(
    mutation_log: list[MutationEntry],
    ledger: BackupLedger,
    report: InstallationReport,
    installed_packages: list[InstalledPackageRecord] | None = None,
    homebrew: Homebrew | None = None,
) -> RollbackOutcome:
    """Undo every mutation in ``mutation_log``.

    Args:
        mutation_log: Entries in the order they were recorded.
        ledger: The run's backup ledger.
        report: Installation report for progress and failures.
        installed_packages: Packages this run installed.
        homebrew: Adapter used to uninstall ``installed_packages``.

    Returns:
        RollbackOutcome listing what was restored, removed, uninstalled
        and every error encountered.
    """
    outcome = RollbackOutcome()
    report.warning("Rolling back installation due to failure...")

    for entry in mutation_log:
        if entry.kind == MutationKind.MODIFIED:
            _restore_entry(entry, ledger, report, outcome)
        else:
            _remove_entry(entry, report, outcome)

    if installed_packages and homebrew is not None:
        report.info("Uninstalling packages that were installed...")
        for pkg in installed_packages:
            result = homebrew.uninstall(pkg.package_name, pkg.package_kind)
            if result["ok"]:
                outcome.uninstalled.append(pkg.package_name)
                report.info(f"Uninstalled {pkg.package_name}")
            else:
                msg = f"Could not uninstall {pkg.package_name}: {result.get('error', 'unknown')}"
                outcome.errors.append(msg)
                report.error(msg)

    if outcome.errors:
        report.warning(
            f"Rollback completed with {len(outcome.errors)} error(s). "
            f"Check {report.path} for details."
        )
    else:
        report.warning(f"Rollback completed. Check {report.path} for details.")
    return outcome


def _restore_entry(
    entry: MutationEntry,
    ledger: BackupLedger,
    report: InstallationReport,
    outcome: RollbackOutcome,
) -> None:
    target = Path(entry.path)
    try:
        restored = ledger.restore(entry.identifier, target)
    except BackupIOFailure as e:
        outcome.errors.append(str(e))
        report.error(str(e))
        return

    if restored:
        outcome.restored.append(entry.path)
        report.info(f"Restored {_describe(entry)}")
    else:
        msg = f"No backup found for {entry.identifier}; {target} left as is"
        outcome.errors.append(msg)
        report.warning(msg)


def _remove_entry(
    entry: MutationEntry,
    report: InstallationReport,
    outcome: RollbackOutcome,
) -> None:
    path = Path(entry.path)
    if not path.exists() and not path.is_symlink():
        report.debug(f"Already gone: {path}")
        outcome.removed.append(entry.path)
        return

    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        msg = f"Could not remove {path}: {e}"
        outcome.errors.append(msg)
        report.error(msg)
        return

    outcome.removed.append(entry.path)
    report.info(f"Removed created file/directory: {path}")


def _describe(entry: MutationEntry) -> str:
    target = ConfigTarget.from_label(entry.identifier)
    if target is not None:
        return f"~/{target.relative_path}"
    return entry.path
