"""
Backup use cases — list backup areas and restore one after the fact.

A backup area outlives the run that wrote it; its manifest.json holds
everything needed to put the original files back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from termsetup.core.engine.ledger import BackupLedger, list_backup_dirs, read_manifest
from termsetup.core.errors import BackupIOFailure
from termsetup.core.models.ledger import BackupManifest

logger = logging.getLogger(__name__)


@dataclass
class BackupArea:
    """One backup directory and its manifest (None if unreadable)."""

    path: Path
    manifest: BackupManifest | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "created_at": self.manifest.created_at if self.manifest else None,
            "records": [r.model_dump(mode="json") for r in self.manifest.records]
            if self.manifest else [],
            "error": self.error,
        }


@dataclass
class RestoreResult:
    """Result of restoring a backup area."""

    backup_dir: Path | None = None
    restored: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.backup_dir is not None and not self.errors

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "backup_dir": str(self.backup_dir) if self.backup_dir else None,
            "restored": self.restored,
            "errors": self.errors,
        }


def list_backups(home: Path, prefix: str) -> list[BackupArea]:
    """Every backup area under ``home``, newest first."""
    areas: list[BackupArea] = []
    for path in list_backup_dirs(home, prefix):
        try:
            areas.append(BackupArea(path=path, manifest=read_manifest(path)))
        except BackupIOFailure as e:
            areas.append(BackupArea(path=path, error=str(e)))
    return areas


def restore_backup(
    home: Path,
    prefix: str,
    backup_dir: Path | None = None,
) -> RestoreResult:
    """Restore every record of ``backup_dir`` (default: the newest area).

    Each record goes back to the path it was copied from.  A record
    that fails is collected and the rest are still restored.
    """
    result = RestoreResult()

    if backup_dir is None:
        candidates = list_backup_dirs(home, prefix)
        if not candidates:
            result.errors.append(f"No backup directories found in {home}")
            return result
        backup_dir = candidates[0]

    try:
        ledger = BackupLedger.open_existing(backup_dir)
    except BackupIOFailure as e:
        result.errors.append(str(e))
        return result

    result.backup_dir = backup_dir
    for record in ledger.records:
        try:
            if ledger.restore(record.label, Path(record.original_path)):
                result.restored.append(record.original_path)
            else:
                result.errors.append(f"Backup for {record.label} is missing")
        except BackupIOFailure as e:
            result.errors.append(str(e))

    logger.info("Restored %d record(s) from %s", len(result.restored), backup_dir)
    return result
