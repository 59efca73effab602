"""
Backup Ledger — copies of pre-existing paths taken before mutation.

One ledger per run.  The backup area is created lazily on the first
real backup and named with the run timestamp, e.g.::

    ~/.fastfetch-setup-backup-20261019_140211/
        zshrc.backup
        kitty/
        manifest.json

``manifest.json`` is rewritten atomically after every backup so the
area stays usable after the process exits (``termsetup restore``).
"""

from __future__ import annotations

import json
import logging
import shutil
import tempfile
import time
from pathlib import Path

from termsetup.core.errors import BackupIOFailure
from termsetup.core.models.ledger import BackupManifest, BackupRecord, PathKind

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"


class BackupLedger:
    """Records and restores backups under unique labels.

    Args:
        home: Home directory the backup area lives in.
        prefix: Backup directory name prefix; the run timestamp is appended.
        timestamp: Override the run timestamp (``YYYYmmdd_HHMMSS``).
    """

    def __init__(
        self,
        home: Path,
        prefix: str = ".fastfetch-setup-backup-",
        timestamp: str | None = None,
    ):
        self._home = home
        self._prefix = prefix
        self._timestamp = timestamp or time.strftime("%Y%m%d_%H%M%S")
        self._dir: Path | None = None
        self._records: dict[str, BackupRecord] = {}

    @classmethod
    def open_existing(cls, backup_dir: Path) -> BackupLedger:
        """Reopen a backup area written by an earlier run."""
        manifest = read_manifest(backup_dir)
        ledger = cls(home=Path(manifest.home) if manifest.home else backup_dir.parent)
        ledger._dir = backup_dir
        for record in manifest.records:
            ledger._records[record.label] = record
        return ledger

    # ── Properties ──────────────────────────────────────────────

    @property
    def directory(self) -> Path | None:
        """The backup area, or None if nothing was backed up yet."""
        return self._dir

    @property
    def planned_directory(self) -> Path:
        """Where the backup area is (or will be) created."""
        return self._dir or self._home / f"{self._prefix}{self._timestamp}"

    @property
    def records(self) -> list[BackupRecord]:
        return list(self._records.values())

    def get(self, label: str) -> BackupRecord | None:
        return self._records.get(label)

    def has(self, label: str) -> bool:
        return label in self._records

    # ── Operations ──────────────────────────────────────────────

    def backup(self, path: Path, label: str) -> bool:
        """Copy ``path`` into the backup area under ``label``.

        Returns:
            True if a backup was made, False if ``path`` does not exist.

        Raises:
            BackupIOFailure: If the copy fails.
        """
        if not path.exists() and not path.is_symlink():
            logger.debug("backup: %s does not exist, nothing to back up", path)
            return False

        area = self._ensure_dir()
        dest = area / label
        kind = PathKind.DIRECTORY if path.is_dir() else PathKind.FILE

        try:
            if dest.exists():
                _remove_path(dest)
            if kind == PathKind.DIRECTORY:
                shutil.copytree(path, dest, symlinks=True)
            else:
                shutil.copy2(path, dest, follow_symlinks=False)
        except OSError as e:
            raise BackupIOFailure(f"Cannot back up {path} → {dest}: {e}") from e

        self._records[label] = BackupRecord(
            label=label,
            original_path=str(path),
            backup_path=str(dest),
            kind=kind,
        )
        self._write_manifest()
        logger.debug("Backed up %s → %s", path, dest)
        return True

    def restore(self, label: str, target_path: Path) -> bool:
        """Put the backup stored under ``label`` back at ``target_path``.

        A file backup overwrites the target.  A directory backup fully
        replaces the target: whatever is there is removed first.

        Returns:
            True if restored, False if there is no backup for ``label``.

        Raises:
            BackupIOFailure: If removing or copying fails.
        """
        record = self._records.get(label)
        if record is None:
            return False

        source = Path(record.backup_path)
        if not source.exists() and not source.is_symlink():
            logger.warning("Backup for '%s' is missing on disk: %s", label, source)
            return False

        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            if record.kind == PathKind.DIRECTORY:
                if target_path.exists() or target_path.is_symlink():
                    _remove_path(target_path)
                shutil.copytree(source, target_path, symlinks=True)
            else:
                if target_path.is_dir() and not target_path.is_symlink():
                    shutil.rmtree(target_path)
                elif target_path.is_symlink():
                    target_path.unlink()
                shutil.copy2(source, target_path, follow_symlinks=False)
        except OSError as e:
            raise BackupIOFailure(f"Cannot restore {label} → {target_path}: {e}") from e

        logger.debug("Restored %s → %s", label, target_path)
        return True

    # ── Internals ───────────────────────────────────────────────

    def _ensure_dir(self) -> Path:
        if self._dir is not None:
            return self._dir

        candidate = self._home / f"{self._prefix}{self._timestamp}"
        suffix = 1
        while candidate.exists():
            candidate = self._home / f"{self._prefix}{self._timestamp}-{suffix}"
            suffix += 1

        try:
            candidate.mkdir(parents=True)
        except OSError as e:
            raise BackupIOFailure(f"Cannot create backup directory {candidate}: {e}") from e

        self._dir = candidate
        logger.info("Created backup directory %s", candidate)
        return candidate

    def _write_manifest(self) -> None:
        """Write manifest.json (atomic: temp file, then rename)."""
        assert self._dir is not None
        manifest = BackupManifest(home=str(self._home), records=self.records)
        content = json.dumps(manifest.model_dump(mode="json"), indent=2) + "\n"
        path = self._dir / MANIFEST_FILE

        try:
            _fd, tmp_path = tempfile.mkstemp(dir=self._dir, prefix=".manifest_", suffix=".tmp")
            tmp = Path(tmp_path)
            try:
                with open(_fd, "w", encoding="utf-8") as f:
                    f.write(content)
                tmp.rename(path)
            except Exception:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as e:
            raise BackupIOFailure(f"Cannot write backup manifest {path}: {e}") from e


def read_manifest(backup_dir: Path) -> BackupManifest:
    """Load ``manifest.json`` from a backup area.

    Raises:
        BackupIOFailure: If the manifest is missing or unreadable.
    """
    path = backup_dir / MANIFEST_FILE
    if not path.is_file():
        raise BackupIOFailure(f"No {MANIFEST_FILE} in {backup_dir}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return BackupManifest.model_validate(data)
    except (OSError, ValueError) as e:
        raise BackupIOFailure(f"Corrupt backup manifest {path}: {e}") from e


def list_backup_dirs(home: Path, prefix: str = ".fastfetch-setup-backup-") -> list[Path]:
    """Backup areas under ``home``, newest first."""
    dirs = [p for p in home.glob(f"{prefix}*") if p.is_dir()]
    return sorted(dirs, key=lambda p: p.name, reverse=True)


def _remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()
