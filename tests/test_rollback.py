"""
Tests for the rollback engine.
"""

from __future__ import annotations

from pathlib import Path

from termsetup.core.engine.ledger import BackupLedger
from termsetup.core.engine.report import InstallationReport
from termsetup.core.engine.rollback import rollback
from termsetup.core.models.ledger import (
    InstalledPackageRecord,
    MutationEntry,
    MutationKind,
    PackageKind,
)


def _created(path: Path) -> MutationEntry:
    return MutationEntry(kind=MutationKind.CREATED, identifier=str(path), path=str(path))


def _modified(label: str, path: Path) -> MutationEntry:
    return MutationEntry(kind=MutationKind.MODIFIED, identifier=label, path=str(path))


class FakeHomebrew:
    def __init__(self, failing: set[str] | None = None):
        self.uninstalled: list[tuple[str, PackageKind]] = []
        self._failing = failing or set()

    def uninstall(self, name: str, kind: PackageKind) -> dict:
        if name in self._failing:
            return {"ok": False, "returncode": 1, "error": "still in use"}
        self.uninstalled.append((name, kind))
        return {"ok": True, "returncode": 0}


def _report(home: Path, lines: list[str]) -> InstallationReport:
    return InstallationReport(home / "setup.log", echo=lines.append, color=False)


class TestRollback:
    """Tests for rollback()."""

    def test_created_file_removed(self, home: Path):
        rc = home / ".zshrc"
        rc.write_text("# generated\n")
        outcome = rollback([_created(rc)], BackupLedger(home), _report(home, []))
        assert not rc.exists()
        assert outcome.ok
        assert outcome.removed == [str(rc)]

    def test_created_directory_removed_with_children(self, home: Path):
        d = home / ".config"
        (d / "kitty").mkdir(parents=True)
        (d / "kitty" / "kitty.conf").write_text("x")
        outcome = rollback(
            [_created(d), _created(d / "kitty")],
            BackupLedger(home),
            _report(home, []),
        )
        assert not d.exists()
        assert outcome.ok
        assert len(outcome.removed) == 2

    def test_already_gone_is_success(self, home: Path):
        outcome = rollback([_created(home / "never")], BackupLedger(home), _report(home, []))
        assert outcome.ok

    def test_modified_restored(self, home: Path):
        rc = home / ".zshrc"
        rc.write_text("mine\n")
        ledger = BackupLedger(home, timestamp="20261019_000000")
        ledger.backup(rc, "zshrc.backup")
        rc.write_text("mine\n# appended\n")

        lines: list[str] = []
        outcome = rollback([_modified("zshrc.backup", rc)], ledger, _report(home, lines))
        assert rc.read_text() == "mine\n"
        assert outcome.restored == [str(rc)]
        assert any("Restored ~/.zshrc" in line for line in lines)

    def test_missing_backup_collected_and_rest_continues(self, home: Path):
        rc = home / ".zshrc"
        rc.write_text("changed")
        created = home / ".local"
        created.mkdir()

        outcome = rollback(
            [_modified("zshrc.backup", rc), _created(created)],
            BackupLedger(home),
            _report(home, []),
        )
        assert len(outcome.errors) == 1
        assert not created.exists()
        assert rc.read_text() == "changed"

    def test_restore_error_collected_and_rest_continues(self, home: Path, monkeypatch):
        rc = home / ".zshrc"
        rc.write_text("mine\n")
        ledger = BackupLedger(home, timestamp="20261019_000000")
        ledger.backup(rc, "zshrc.backup")
        rc.write_text("changed")
        created = home / ".local"
        created.mkdir()

        def _locked(*args, **kwargs):
            raise PermissionError("target is locked")

        monkeypatch.setattr("termsetup.core.engine.ledger.shutil.copy2", _locked)
        lines: list[str] = []
        outcome = rollback(
            [_modified("zshrc.backup", rc), _created(created)],
            ledger,
            _report(home, lines),
        )
        assert outcome.restored == []
        assert len(outcome.errors) == 1
        assert "Cannot restore zshrc.backup" in outcome.errors[0]
        assert "target is locked" in outcome.errors[0]
        assert any(line.startswith("[ERROR] Cannot restore") for line in lines)
        assert outcome.removed == [str(created)]
        assert not created.exists()

    def test_packages_uninstalled(self, home: Path):
        brew = FakeHomebrew()
        packages = [
            InstalledPackageRecord(package_name="fastfetch"),
            InstalledPackageRecord(package_name="kitty", package_kind=PackageKind.CASK),
        ]
        outcome = rollback([], BackupLedger(home), _report(home, []), packages, brew)
        assert brew.uninstalled == [
            ("fastfetch", PackageKind.FORMULA),
            ("kitty", PackageKind.CASK),
        ]
        assert outcome.uninstalled == ["fastfetch", "kitty"]

    def test_uninstall_failure_is_collected(self, home: Path):
        brew = FakeHomebrew(failing={"kitty"})
        packages = [
            InstalledPackageRecord(package_name="kitty", package_kind=PackageKind.CASK),
            InstalledPackageRecord(package_name="fastfetch"),
        ]
        lines: list[str] = []
        outcome = rollback([], BackupLedger(home), _report(home, lines), packages, brew)
        assert outcome.uninstalled == ["fastfetch"]
        assert "still in use" in outcome.errors[0]
        assert "completed with 1 error(s)" in lines[-1]

    def test_completion_reported(self, home: Path):
        lines: list[str] = []
        rollback([], BackupLedger(home), _report(home, lines))
        assert lines[0].startswith("[WARNING] Rolling back")
        assert lines[-1].startswith("[WARNING] Rollback completed.")
