"""
Ledger models — what a run backed up, created and installed.

These are the records the rollback engine consumes. BackupRecords are
also persisted in the backup area's ``manifest.json`` so a later
``termsetup restore`` can use them after the process has exited.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class PathKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


class ConfigTarget(Enum):
    """Every path the setup may mutate, keyed by what it is.

    Value: (home-relative path, kind, backup label).
    """

    SHELL_RC = (".zshrc", PathKind.FILE, "zshrc.backup")
    SHELL_PROFILE = (".zprofile", PathKind.FILE, "zprofile.backup")
    TERMINAL_CONFIG = (".config/kitty", PathKind.DIRECTORY, "kitty")
    INFO_TOOL_CONFIG = (".config/fastfetch", PathKind.DIRECTORY, "fastfetch")
    SHELL_FRAMEWORK = (".oh-my-zsh", PathKind.DIRECTORY, "oh-my-zsh")
    TERMINAL_FUNCTIONS = (
        ".local/bin/terminal-functions.sh",
        PathKind.FILE,
        "terminal-functions.sh.backup",
    )

    @property
    def relative_path(self) -> str:
        return self.value[0]

    @property
    def kind(self) -> PathKind:
        return self.value[1]

    @property
    def label(self) -> str:
        return self.value[2]

    def path_in(self, home: Path) -> Path:
        """Absolute path of this target under ``home``."""
        return home / self.relative_path

    @classmethod
    def from_label(cls, label: str) -> ConfigTarget | None:
        for target in cls:
            if target.label == label:
                return target
        return None


class BackupRecord(BaseModel):
    """A pre-existing path copied into the backup area."""

    label: str
    original_path: str
    backup_path: str
    kind: PathKind
    created_at: str = Field(default_factory=_now_iso)


class MutationKind(str, Enum):
    MODIFIED = "modified"
    CREATED = "created"


class MutationEntry(BaseModel):
    """One entry of the mutation log.

    For ``modified`` entries ``identifier`` is the backup label; for
    ``created`` entries it is the created path.
    """

    kind: MutationKind
    identifier: str
    path: str

    @property
    def is_created(self) -> bool:
        return self.kind == MutationKind.CREATED


class PackageKind(str, Enum):
    FORMULA = "formula"
    CASK = "cask"


class InstalledPackageRecord(BaseModel):
    """A package this run installed (Homebrew reported success)."""

    package_name: str
    package_kind: PackageKind = PackageKind.FORMULA


class BackupManifest(BaseModel):
    """Contents of ``<backup area>/manifest.json``."""

    schema_version: int = 1
    created_at: str = Field(default_factory=_now_iso)
    home: str = ""
    records: list[BackupRecord] = Field(default_factory=list)
